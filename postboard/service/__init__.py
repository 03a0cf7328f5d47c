"""Collection service and ordering rules for posts."""

from .collection import CollectionService
from .ordering import NEWEST_FIRST, OrderingPolicy

__all__ = ["CollectionService", "NEWEST_FIRST", "OrderingPolicy"]

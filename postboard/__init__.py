"""Postboard: an ordered collection of posts shared between devices and a backend."""

__version__ = "0.1.0"

"""FastAPI application exposing the collection service under /posts."""

import logging
from datetime import datetime
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..errors import MalformedRequest, NotFound, StorageError
from ..service import CollectionService
from .schemas import PostCreate, PostSnapshot, PostUpdate

logger = logging.getLogger(__name__)


def create_app(service: CollectionService) -> FastAPI:
    """Create the posts API application.

    Args:
        service: Collection service backing every route.

    Returns:
        Configured FastAPI application.
    """
    app = FastAPI(
        title="Postboard",
        description="Ordered post collection shared between devices",
        version=__version__,
    )

    app.state.service = service

    # Clients run on other hosts
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type"],
    )

    # ==================== Error Handlers ====================

    @app.exception_handler(NotFound)
    async def not_found_handler(request: Request, exc: NotFound):
        return JSONResponse(status_code=404, content={"message": "Post not found"})

    @app.exception_handler(MalformedRequest)
    async def malformed_handler(request: Request, exc: MalformedRequest):
        return JSONResponse(status_code=400, content={"message": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def validation_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", "")}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content={"message": "Malformed request", "errors": errors},
        )

    @app.exception_handler(StorageError)
    async def storage_handler(request: Request, exc: StorageError):
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
        return JSONResponse(status_code=500, content={"message": "Storage failure"})

    # ==================== Posts ====================

    @app.get("/posts")
    def list_posts() -> dict[str, Any]:
        return {"posts": [p.to_dict() for p in service.list()]}

    @app.get("/posts/{post_id}")
    def get_post(post_id: str) -> dict[str, Any]:
        """Get one post. An unknown id answers 200 with no post key."""
        try:
            post = service.get(post_id)
        except NotFound:
            return {}
        return {"post": post.to_dict()}

    @app.post("/posts", status_code=201)
    def create_post(payload: PostCreate) -> dict[str, Any]:
        post = service.create(payload.model_dump(exclude={"id"}))
        return {"message": "Stored new post.", "post": post.to_dict()}

    @app.put("/posts/{post_id}")
    def update_post(post_id: str, payload: PostUpdate) -> dict[str, Any]:
        fields = payload.model_dump(exclude_unset=True, exclude={"id"})
        post = service.update(post_id, fields)
        return {"message": "Post updated.", "post": post.to_dict()}

    @app.delete("/posts/{post_id}")
    def delete_post(post_id: str) -> dict[str, Any]:
        post = service.delete(post_id)
        return {"message": "Post deleted.", "post": post.to_dict()}

    @app.put("/posts")
    def reorder_posts(snapshot: list[PostSnapshot]) -> dict[str, Any]:
        posts = service.reorder(item.model_dump() for item in snapshot)
        return {"message": "Posts order updated.", "posts": [p.to_dict() for p in posts]}

    # ==================== Health ====================

    @app.get("/health")
    def health() -> dict[str, Any]:
        """Health check. Reports the post count when the store is readable."""
        status: dict[str, Any] = {
            "status": "ok",
            "timestamp": datetime.now().isoformat(),
        }
        try:
            status["posts"] = len(service.list())
        except StorageError as e:
            status["status"] = "degraded"
            status["store_error"] = str(e)
        return status

    return app

"""CLI entry point for Postboard."""

import argparse
import asyncio
import json
import logging
import sys
import traceback
from datetime import datetime
from pathlib import Path

from .client import PostsClient, PostsView, ViewState
from .config import Config, load_config
from .errors import NetworkError


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "component": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = "".join(traceback.format_exception(*record.exc_info))

        try:
            return json.dumps(log_data)
        except (TypeError, ValueError):
            log_data["message"] = str(log_data["message"])
            return json.dumps(log_data)


def setup_logging(verbose: bool = False, log_level: str | None = None, json_output: bool = False) -> None:
    """Configure logging.

    Args:
        verbose: Enable debug logging (ignored if log_level is set).
        log_level: Explicit log level (warning, info, debug).
        json_output: Output logs as JSON lines for machine parsing.
    """
    if log_level:
        level_map = {
            "warning": logging.WARNING,
            "info": logging.INFO,
            "debug": logging.DEBUG,
        }
        level = level_map.get(log_level, logging.INFO)
    else:
        level = logging.DEBUG if verbose else logging.WARNING

    handler = logging.StreamHandler()
    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)

    logging.basicConfig(
        level=level,
        handlers=[handler],
    )


def _load(args: argparse.Namespace) -> Config:
    config = load_config(args.config)
    if getattr(args, "url", None):
        config.client.base_url = args.url
    return config


async def cmd_serve(args: argparse.Namespace) -> int:
    """Run the posts backend."""
    config = _load(args)

    from .api import create_app
    from .service import CollectionService
    from .store import PostStore

    import uvicorn

    host = args.host or config.server.host
    port = args.port or config.server.port

    store = PostStore(config.store.db_path)
    store.connect()

    print(f"Starting Postboard backend")
    print(f"Store: {store.db_path}")
    print(f"URL: http://{host}:{port}/posts")

    app = create_app(CollectionService(store))

    try:
        verbose = getattr(args, "verbose", False)
        config_uvicorn = uvicorn.Config(
            app,
            host=host,
            port=port,
            log_level="info" if verbose else "warning",
        )
        server = uvicorn.Server(config_uvicorn)
        await server.serve()
    finally:
        store.close()

    return 0


async def _mounted_view(config: Config) -> PostsView | None:
    view = PostsView(PostsClient(config.client.base_url, timeout=config.client.timeout))
    await view.mount()
    if view.state == ViewState.ERROR:
        print("\n".join(view.render()), file=sys.stderr)
        return None
    return view


def _find(view: PostsView, post_id: str):
    for post in view.posts:
        if post.id == post_id:
            return post
    print(f"Post not found: {post_id}", file=sys.stderr)
    return None


def _finish(view: PostsView, ok: bool) -> int:
    view.unmount()
    if not ok or view.state == ViewState.ERROR:
        print(f"Error: {view.error}" if view.error else "Nothing saved", file=sys.stderr)
        return 1
    return 0


async def cmd_list(args: argparse.Namespace) -> int:
    """Print the ordered list."""
    view = await _mounted_view(_load(args))
    if view is None:
        return 1

    if args.json:
        print(json.dumps([p.to_dict() for p in view.posts], indent=2))
    else:
        print("\n".join(view.render()))
    view.unmount()
    return 0


async def cmd_show(args: argparse.Namespace) -> int:
    """Print one post."""
    config = _load(args)
    client = PostsClient(config.client.base_url, timeout=config.client.timeout)
    try:
        post = await client.get_post(args.id)
    except NetworkError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if post is None:
        print(f"Post not found: {args.id}", file=sys.stderr)
        return 1
    print(json.dumps(post.to_dict(), indent=2))
    return 0


async def cmd_add(args: argparse.Namespace) -> int:
    """Create a post."""
    view = await _mounted_view(_load(args))
    if view is None:
        return 1

    view.open_create()
    ok = await view.save(args.author, args.body)
    if view.last_write is not None:
        print(f"Created post {view.last_write.id}")
    return _finish(view, ok)


async def cmd_edit(args: argparse.Namespace) -> int:
    """Update a post's author and/or body."""
    view = await _mounted_view(_load(args))
    if view is None:
        return 1

    post = _find(view, args.id)
    if post is None:
        return 1

    view.open_edit(post)
    ok = await view.save(args.author, args.body)
    return _finish(view, ok)


async def cmd_delete(args: argparse.Namespace) -> int:
    """Delete a post."""
    view = await _mounted_view(_load(args))
    if view is None:
        return 1

    post = _find(view, args.id)
    if post is None:
        return 1

    view.open_edit(post)
    ok = await view.delete()
    return _finish(view, ok)


async def cmd_move(args: argparse.Namespace) -> int:
    """Drag a post from one position to another."""
    view = await _mounted_view(_load(args))
    if view is None:
        return 1

    try:
        task = view.drag(args.from_index, args.to_index)
    except IndexError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if task is None:
        return _finish(view, False)

    pushed = await task
    await view.wait_idle()
    print("\n".join(view.render()))
    if not pushed:
        view.unmount()
        print(f"Error: order not saved: {view.push_error}", file=sys.stderr)
        return 1
    return _finish(view, True)


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="postboard",
        description="Ordered post collection shared between devices",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to config file (default: none)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["warning", "info", "debug"],
        default=None,
        help="Set log level explicitly (overrides -v/--verbose)",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Output logs as JSON for machine parsing",
    )
    parser.add_argument(
        "--url",
        type=str,
        default=None,
        help="Posts backend URL (overrides config)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the posts backend")
    serve_parser.add_argument(
        "-p", "--port",
        type=int,
        default=None,
        help="Port to listen on (default: 8080)",
    )
    serve_parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Host to bind to (default: 0.0.0.0)",
    )
    serve_parser.set_defaults(func=cmd_serve)

    # List command
    list_parser = subparsers.add_parser("list", help="Show the ordered list")
    list_parser.add_argument(
        "--json",
        action="store_true",
        help="Output posts as JSON",
    )
    list_parser.set_defaults(func=cmd_list)

    show_parser = subparsers.add_parser("show", help="Show one post")
    show_parser.add_argument("id", help="Post id")
    show_parser.set_defaults(func=cmd_show)

    add_parser = subparsers.add_parser("add", help="Create a post")
    add_parser.add_argument("--author", required=True)
    add_parser.add_argument("--body", required=True)
    add_parser.set_defaults(func=cmd_add)

    edit_parser = subparsers.add_parser("edit", help="Edit a post")
    edit_parser.add_argument("id", help="Post id")
    edit_parser.add_argument("--author", default=None)
    edit_parser.add_argument("--body", default=None)
    edit_parser.set_defaults(func=cmd_edit)

    delete_parser = subparsers.add_parser("delete", help="Delete a post")
    delete_parser.add_argument("id", help="Post id")
    delete_parser.set_defaults(func=cmd_delete)

    # Move command (drag reorder)
    move_parser = subparsers.add_parser("move", help="Move a post to a new position")
    move_parser.add_argument("from_index", type=int, help="Current position")
    move_parser.add_argument("to_index", type=int, help="New position")
    move_parser.set_defaults(func=cmd_move)

    args = parser.parse_args()

    setup_logging(args.verbose, args.log_level, args.json_logs)

    if not args.command:
        parser.print_help()
        return 1

    return asyncio.run(args.func(args))


if __name__ == "__main__":
    sys.exit(main())

"""Configuration loading for Postboard."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 8080


@dataclass
class StoreConfig:
    """Configuration for the persistent post store."""

    db_path: str = "~/.postboard/posts.db"


@dataclass
class ClientConfig:
    """Configuration for the sync client."""

    base_url: str = "http://localhost:8080/posts"
    timeout: float = 5.0  # httpx default


@dataclass
class Config:
    server: ServerConfig = field(default_factory=ServerConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    client: ClientConfig = field(default_factory=ClientConfig)


def _get_env(key: str, default: Any = None) -> Any:
    """Get environment variable with POSTBOARD_ prefix."""
    return os.environ.get(f"POSTBOARD_{key}", default)


def _apply_env_overrides(config: Config) -> Config:
    """Apply environment variable overrides to config."""
    if host := _get_env("SERVER_HOST"):
        config.server.host = host
    if port := _get_env("SERVER_PORT"):
        config.server.port = int(port)

    if db_path := _get_env("STORE_DB_PATH"):
        config.store.db_path = db_path

    if base_url := _get_env("CLIENT_URL"):
        config.client.base_url = base_url
    if timeout := _get_env("CLIENT_TIMEOUT"):
        config.client.timeout = float(timeout)

    return config


def load_config(config_path: str | Path | None = None) -> Config:
    """Load configuration from YAML file with environment variable overrides.

    Args:
        config_path: Path to YAML config file. If None or missing, defaults
            are used.

    Returns:
        Loaded Config object.
    """
    config = Config()

    if config_path:
        path = Path(config_path)
        if path.exists():
            with open(path) as f:
                data = yaml.safe_load(f) or {}

            if "server" in data:
                server_data = data["server"]
                config.server = ServerConfig(
                    host=server_data.get("host", config.server.host),
                    port=server_data.get("port", config.server.port),
                )

            if "store" in data:
                config.store = StoreConfig(
                    db_path=data["store"].get("db_path", config.store.db_path)
                )

            if "client" in data:
                client_data = data["client"]
                config.client = ClientConfig(
                    base_url=client_data.get("base_url", config.client.base_url),
                    timeout=client_data.get("timeout", config.client.timeout),
                )

    return _apply_env_overrides(config)

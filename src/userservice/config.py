"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

All tunables in one dataclass, validated once at startup.

    Priority (highest to lowest):

    1. Command-line flags       python -m userservice --port 3000
    2. Environment variables    USERSVC_PORT=3000 python -m userservice
    3. Defaults in this class

Validation is eager: ``HTTPServer`` calls ``validate()`` in its
constructor, so a bad port or worker count fails at startup with a clear
message instead of at the first request.

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional


ENV_PREFIX = "USERSVC_"


@dataclass
class ServerConfig:
    """
    Configuration for the user service.

    Development:
        ServerConfig(log_level="DEBUG")

    Container:
        ServerConfig(host="0.0.0.0", max_workers=32, log_format="json")
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """Bind address. Use 0.0.0.0 inside containers."""

    port: int = 8080

    backlog: int = 128
    """Pending connections the kernel queues before refusing new ones."""

    buffer_size: int = 8192
    """Bytes per recv() call."""

    timeout: Optional[float] = 30.0
    """Seconds to wait for the first request on a connection. None blocks forever."""

    # ─────────────────────────────────────────────────────────────────────
    # HTTP
    # ─────────────────────────────────────────────────────────────────────

    keep_alive: bool = True

    keep_alive_timeout: float = 5.0
    """Idle seconds before a keep-alive connection is closed."""

    max_request_size: int = 1024 * 1024
    """
    Upper bound on headers + body. User payloads are a few hundred bytes,
    so 1 MB is generous.
    """

    # ─────────────────────────────────────────────────────────────────────
    # THREAD POOL
    # ─────────────────────────────────────────────────────────────────────

    min_workers: int = 4
    max_workers: int = 16

    queue_size: int = 100
    """Connections waiting for a worker. When full, new connections get 503."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"

    log_format: str = "text"
    """Access log format: 'text' (Apache-like) or 'json'."""

    # ─────────────────────────────────────────────────────────────────────
    # IDENTITY
    # ─────────────────────────────────────────────────────────────────────

    server_name: str = "userservice/1.0"

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Build a config from ``USERSVC_*`` environment variables.

            USERSVC_HOST         bind address       (127.0.0.1)
            USERSVC_PORT         port               (8080)
            USERSVC_WORKERS      max worker threads (16)
            USERSVC_TIMEOUT      request timeout    (30)
            USERSVC_LOG_LEVEL    logging level      (INFO)
            USERSVC_LOG_FORMAT   text | json        (text)

        Raises:
            ValueError: If a numeric variable is not a number.
        """
        defaults = cls()
        max_workers = int(os.getenv(f"{ENV_PREFIX}WORKERS", str(defaults.max_workers)))
        return cls(
            host=os.getenv(f"{ENV_PREFIX}HOST", defaults.host),
            port=int(os.getenv(f"{ENV_PREFIX}PORT", str(defaults.port))),
            min_workers=min(defaults.min_workers, max_workers),
            max_workers=max_workers,
            timeout=float(os.getenv(f"{ENV_PREFIX}TIMEOUT", str(defaults.timeout))),
            log_level=os.getenv(f"{ENV_PREFIX}LOG_LEVEL", defaults.log_level),
            log_format=os.getenv(f"{ENV_PREFIX}LOG_FORMAT", defaults.log_format),
        )

    def validate(self) -> None:
        """
        Check every value and raise ValueError on the first bad one.
        """
        if not 0 < self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 1-65535.")

        if self.min_workers < 1:
            raise ValueError("min_workers must be >= 1")

        if self.max_workers < self.min_workers:
            raise ValueError("max_workers must be >= min_workers")

        if self.queue_size < 1:
            raise ValueError("queue_size must be >= 1")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.keep_alive_timeout <= 0:
            raise ValueError("keep_alive_timeout must be > 0")

        if self.log_format not in ("text", "json"):
            raise ValueError(f"log_format must be 'text' or 'json', got {self.log_format!r}")

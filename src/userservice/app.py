"""
Application factory.

    app = create_app(ServerConfig(port=3000))
    app.run()

Tests pass their own store to inspect state directly, and call
``app.handle(request)`` to skip the socket layer entirely.
"""

from typing import Optional

from .config import ServerConfig
from .middleware import LoggingMiddleware
from .server import HTTPServer
from .users import InMemoryUserStore, UserHandler, UserStore


def create_app(
    config: Optional[ServerConfig] = None,
    store: Optional[UserStore] = None,
) -> HTTPServer:
    """
    Build the user service: server, access logging and the user routes.

    Args:
        config: Server configuration. Defaults to ``ServerConfig()``.
        store: Backing store. Defaults to a fresh InMemoryUserStore.

    Raises:
        ValueError: The configuration is invalid.
    """
    config = config or ServerConfig()
    server = HTTPServer(config)
    server.use(LoggingMiddleware(log_format=config.log_format))

    handler = UserHandler(store if store is not None else InMemoryUserStore())
    handler.register(server)
    return server

"""
=============================================================================
USERSERVICE - User CRUD over HTTP
=============================================================================

A small HTTP/1.1 service that creates, reads, updates the email of, and
deletes users held in memory.

    POST   /users              {"name": ..., "email": ...}  → 201
    GET    /users/:id                                       → 200
    PUT    /users/:id/email    {"email": ...}               → 200
    DELETE /users/:id                                       → 204

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    userservice/
    ├── __init__.py          # Package exports
    ├── __main__.py          # CLI entry point (python -m userservice)
    ├── app.py               # create_app() factory
    ├── server.py            # HTTPServer orchestrator
    ├── config.py            # ServerConfig dataclass
    ├── core/                # Transport
    │   ├── socket_server.py # Listening socket and accept loop
    │   ├── connection.py    # Per-client framing and keep-alive
    │   └── thread_pool.py   # Worker threads
    ├── http/                # Protocol
    │   ├── request.py       # Request parsing
    │   ├── response.py      # Response building
    │   ├── router.py        # URL routing
    │   └── status_codes.py  # HTTPStatus enum
    ├── middleware/
    │   ├── base.py          # Middleware, MiddlewarePipeline
    │   └── logging.py       # Access log
    └── users/               # The user resource
        ├── models.py        # User value, validation
        ├── store.py         # UserStore, InMemoryUserStore
        └── handlers.py      # UserHandler endpoints

=============================================================================
QUICK START
=============================================================================

    from userservice import create_app, ServerConfig

    app = create_app(ServerConfig(port=8080))
    app.run()

or from a shell:

    python -m userservice --port 8080

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig
from .server import HTTPServer
from .app import create_app

__all__ = ["HTTPServer", "ServerConfig", "create_app", "__version__"]

"""
=============================================================================
HTTP SERVER
=============================================================================

The orchestrator: wires the socket server, the thread pool, the request
parser, the middleware pipeline and the router into one object.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                            HTTPServer                               │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   SocketServer ──► _handle_connection ──► ThreadPool.submit         │
    │                                                  │                  │
    │                                                  ▼                  │
    │                          _process_connection (worker thread)        │
    │                                                  │                  │
    │        Connection.read_request ──► RequestParser.parse              │
    │                                                  │                  │
    │                         handle(request)  ◄───────┘                  │
    │                              │                                      │
    │          MiddlewarePipeline (LoggingMiddleware, ...)                │
    │                              │                                      │
    │                        Router.handle ──► UserHandler ──► UserStore  │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

Every request gets exactly one response:

    parse failure         → HTTPParseError.status_code (400/405/413/505)
    oversized read        → 413
    first-request timeout → 408
    pool queue full       → 503
    expired in pool queue → 503
    handler exception     → 500 (logged with traceback)

=============================================================================
"""

import logging
import threading
from typing import Optional, Callable

from .config import ServerConfig
from .core.connection import Connection, ConnectionState, RequestTooLargeError
from .core.socket_server import SocketServer
from .core.thread_pool import ThreadPool
from .http.request import HTTPRequest, RequestParser, HTTPParseError
from .http.response import HTTPResponse, error_response, internal_error
from .http.router import Router
from .http.status_codes import HTTPStatus
from .middleware.base import Middleware, MiddlewarePipeline


logger = logging.getLogger(__name__)


class HTTPServer:
    """
    Threaded HTTP/1.1 server.

        server = HTTPServer(ServerConfig(port=8080))
        server.use(LoggingMiddleware())

        @server.get("/users/:id")
        def get_user(request):
            return ok({"id": request.path_params["id"]})

        server.run()  # Blocks until Ctrl+C or shutdown()
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        self.config = config or ServerConfig()
        self.config.validate()

        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            min_workers=self.config.min_workers,
            max_workers=self.config.max_workers,
            queue_size=self.config.queue_size,
        )
        self._parser = RequestParser(max_request_size=self.config.max_request_size)

        self._router = Router()
        self._middleware = MiddlewarePipeline()

        # middleware.wrap(router.handle), built on first use
        self._handler: Optional[Callable[[HTTPRequest], HTTPResponse]] = None
        self._handler_lock = threading.Lock()

        self._running = False

    # =========================================================================
    # CONFIGURATION
    # =========================================================================

    def use(self, middleware: Middleware) -> "HTTPServer":
        """
        Add middleware. The first one added is the outermost.

        Must be called before the first request is handled.
        """
        if self._handler is not None:
            raise RuntimeError("Middleware must be added before the server handles requests")
        self._middleware.add(middleware)
        return self

    @property
    def router(self) -> Router:
        return self._router

    @property
    def address(self) -> tuple[str, int]:
        """The bound (host, port) once running, else the configured one."""
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        return self._running

    def get(self, path: str):
        return self._router.get(path)

    def post(self, path: str):
        return self._router.post(path)

    def put(self, path: str):
        return self._router.put(path)

    def delete(self, path: str):
        return self._router.delete(path)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def run(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        configure_logging: bool = True,
        banner: bool = True,
    ):
        """
        Start the server and block until it is stopped.

        Args:
            host: Override config host.
            port: Override config port (0 picks a free port).
            configure_logging: Call logging.basicConfig from the config.
            banner: Print the startup banner and route table.

        Raises:
            OSError: The address could not be bound.
        """
        if host:
            self.config.host = host
        if port is not None:
            self.config.port = port

        if configure_logging:
            self._setup_logging()

        self._build_handler()
        self._thread_pool.start()
        self._running = True

        logger.info(f"Starting HTTP server on {self.config.host}:{self.config.port}")
        if banner:
            self._print_startup_banner()

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the listening socket is bound. For callers running run() in a thread."""
        return self._socket_server.wait_until_ready(timeout)

    def shutdown(self):
        """
        Stop accepting connections. run() then drains the pool and returns.

        Safe to call from another thread or a signal handler.
        """
        self._running = False
        self._socket_server.shutdown()

    def _shutdown(self):
        logger.info("Shutting down server...")
        self._running = False
        self._thread_pool.shutdown(wait=True, timeout=self.config.keep_alive_timeout * 2)
        logger.info("Server stopped")

    def _print_startup_banner(self):
        host, port = self.address
        print()
        print("╔══════════════════════════════════════════════════════════════╗")
        print(f"  {self.config.server_name} running")
        print(f"  http://{host}:{port}")
        print(f"  Workers: {self.config.min_workers}-{self.config.max_workers} threads")
        print("  Press Ctrl+C to stop")
        print("╚══════════════════════════════════════════════════════════════╝")
        print()
        self._router.print_routes()

    def _setup_logging(self):
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("userservice").setLevel(level)

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def _build_handler(self) -> Callable[[HTTPRequest], HTTPResponse]:
        with self._handler_lock:
            if self._handler is None:
                self._handler = self._middleware.wrap(self._router.handle)
            return self._handler

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Run one parsed request through middleware and router.

        Never raises: an exception escaping the chain becomes a 500.
        """
        handler = self._handler or self._build_handler()
        try:
            return handler(request)
        except Exception as e:
            logger.exception(f"Unhandled error for {request.method} {request.path}: {e}")
            return internal_error()

    def _handle_connection(self, conn: Connection):
        """Called on the accept thread; hands the connection to the pool."""
        submitted = self._thread_pool.submit(
            self._process_connection,
            args=(conn,),
            timeout=self.config.timeout,
            block=False,
            on_drop=lambda: self._reject(conn, "waited too long in queue"),
        )

        if not submitted:
            self._reject(conn, "thread pool full")

    def _reject(self, conn: Connection, reason: str):
        """Answer 503 and close a connection that will not be processed."""
        logger.warning(f"[{conn.id}] Rejecting connection: {reason}")
        self._send_error(conn, HTTPStatus.SERVICE_UNAVAILABLE, "Server overloaded")
        conn.close()

    def _process_connection(self, conn: Connection):
        """
        Keep-alive loop for one connection (worker thread).

        read → parse → handle → send, repeated while both sides want
        keep-alive and the server is running.
        """
        with conn:
            while self._running:
                try:
                    raw_request = conn.read_request()
                except TimeoutError:
                    self._send_error(conn, HTTPStatus.REQUEST_TIMEOUT, "Request timeout")
                    break
                except RequestTooLargeError as e:
                    self._send_error(conn, HTTPStatus.PAYLOAD_TOO_LARGE, str(e))
                    break

                if raw_request is None:
                    break

                try:
                    request = self._parser.parse(raw_request, conn.address)
                except HTTPParseError as e:
                    self._send_error(conn, e.status_code, str(e))
                    break

                conn.state = ConnectionState.PROCESSING
                response = self.handle(request)

                keep_alive = request.is_keep_alive and self.config.keep_alive and self._running
                if keep_alive:
                    response.headers.setdefault("Connection", "keep-alive")
                    response.headers.setdefault(
                        "Keep-Alive", f"timeout={int(self.config.keep_alive_timeout)}"
                    )
                else:
                    response.headers["Connection"] = "close"

                if not conn.send_response(response.to_bytes(self.config.server_name)):
                    break

                if not keep_alive:
                    break

                conn.set_keep_alive()

    def _send_error(self, conn: Connection, status: int, message: str):
        """Error response for failures outside the handler chain (parse, timeout, overload)."""
        response = error_response(HTTPStatus(status), message)
        response.headers["Connection"] = "close"
        conn.send_response(response.to_bytes(self.config.server_name))

"""
=============================================================================
URL ROUTER
=============================================================================

Exact-match routing on (METHOD, PATH):

    ┌──────────────────────────────────────────────────────────┐
    │  GET  /          → index                                 │
    │  GET  /health    → health handler                        │
    │  POST /process   → process handler                       │
    │  GET  /metrics   → metrics handler                       │
    │  *    *          → static 404 page                       │
    └──────────────────────────────────────────────────────────┘

Both halves of the key are compared verbatim: "get /" does not match
GET /, "/health/" does not match /health, and a query string is part
of the path. There are no path parameters, wildcards or 405 responses;
a known path with the wrong method is simply a 404.

=============================================================================
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from .request import HTTPRequest
from .response import HTTPResponse, not_found


logger = logging.getLogger(__name__)

Handler = Callable[[HTTPRequest], HTTPResponse]


@dataclass
class Route:
    """A registered (method, path) → handler binding."""

    method: str
    path: str
    handler: Handler

    @property
    def key(self) -> Tuple[str, str]:
        return (self.method, self.path)


class Router:
    """
    Request router with a 404 fallback.

        router = Router()

        @router.get("/health")
        def health(request):
            ...

    Registering the same (method, path) twice replaces the earlier
    handler.
    """

    def __init__(self, fallback: Optional[Handler] = None):
        self._routes: Dict[Tuple[str, str], Route] = {}
        self._fallback = fallback or (lambda request: not_found())

    def add_route(self, method: str, path: str, handler: Handler) -> Route:
        route = Route(method=method, path=path, handler=handler)
        if route.key in self._routes:
            logger.debug(f"Replacing handler for {method} {path}")
        self._routes[route.key] = route
        return route

    def match(self, method: str, path: str) -> Optional[Route]:
        """Return the route registered for exactly this method and path."""
        return self._routes.get((method, path))

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """Dispatch to the matching handler, or the fallback."""
        route = self.match(request.method, request.path)
        if route is None:
            return self._fallback(request)
        return route.handler(request)

    # =========================================================================
    # DECORATORS
    # =========================================================================

    def route(self, method: str, path: str) -> Callable[[Handler], Handler]:
        def decorator(handler: Handler) -> Handler:
            self.add_route(method, path, handler)
            return handler
        return decorator

    def get(self, path: str) -> Callable[[Handler], Handler]:
        return self.route("GET", path)

    def post(self, path: str) -> Callable[[Handler], Handler]:
        return self.route("POST", path)

    @property
    def routes(self) -> List[Route]:
        """Registered routes in registration order."""
        return list(self._routes.values())

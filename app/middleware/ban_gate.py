"""IP ban gate for write requests.

A create-paste request must carry the shared-secret header. A request that
doesn't gets its client IP banned for `ban_ttl_seconds` (24h by default);
while the ban key exists every request from that IP is refused.

The static secret is a weak capability check and can be swapped for a
stronger scheme, as long as a failed check still bans and the ban still
decays on its own.
"""

import hmac
import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import settings
from app.errors import CacheError, ForbiddenError
from app.services.cache import CacheService

logger = logging.getLogger(__name__)

BAN_KEY_PREFIX = "ban:"
WRITE_PATH = "/api/pastes"

BANNED_MESSAGE = "Your IP is temporarily banned"
REJECTED_MESSAGE = "Unauthorized request. IP banned."


def _forbidden(exc: ForbiddenError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.client_message})


def client_ip(request: Request) -> str:
    """Socket peer address.

    X-Forwarded-For is never read here; uvicorn rewrites the peer from it only
    for proxies listed in `forwarded_allow_ips`.
    """
    return request.client.host if request.client else "unknown"


class BanList:
    """Per-IP ban flags kept in the key-value backend with their own expiry."""

    def __init__(self, cache: CacheService, ttl_seconds: int | None = None):
        self._cache = cache
        self.ttl_seconds = ttl_seconds or settings.ban_ttl_seconds

    @staticmethod
    def make_key(ip: str) -> str:
        return f"{BAN_KEY_PREFIX}{ip}"

    async def is_banned(self, ip: str) -> bool:
        """Ban lookups that fail are treated as 'not banned'."""
        try:
            return await self._cache.exists(self.make_key(ip))
        except CacheError as e:
            logger.warning("Ban lookup failed | ip=%s | %s", ip, e)
            return False

    async def ban(self, ip: str) -> None:
        try:
            await self._cache.set(self.make_key(ip), "1", self.ttl_seconds)
        except CacheError as e:
            logger.error("Ban write failed | ip=%s | %s", ip, e)
            return
        logger.warning("IP banned | ip=%s | ttl=%ds", ip, self.ttl_seconds)


class BanGateMiddleware(BaseHTTPMiddleware):
    """Rejects banned IPs and bans IPs that fail the write-token check."""

    def __init__(
        self,
        app,
        bans: BanList,
        token_header: str | None = None,
        token: str | None = None,
    ):
        super().__init__(app)
        self.bans = bans
        self.token_header = token_header or settings.write_token_header
        self.token = token if token is not None else settings.write_token

    async def dispatch(self, request: Request, call_next):
        # Preflights are answered by the CORS layer
        if request.method == "OPTIONS":
            return await call_next(request)

        ip = client_ip(request)

        if await self.bans.is_banned(ip):
            logger.info("Blocked banned IP | ip=%s | %s %s", ip, request.method, request.url.path)
            return _forbidden(ForbiddenError(BANNED_MESSAGE))

        if self._is_write(request) and not self._has_valid_token(request):
            await self.bans.ban(ip)
            return _forbidden(ForbiddenError(REJECTED_MESSAGE))

        return await call_next(request)

    def _is_write(self, request: Request) -> bool:
        return request.method == "POST" and request.url.path.rstrip("/") == WRITE_PATH

    def _has_valid_token(self, request: Request) -> bool:
        supplied = request.headers.get(self.token_header, "")
        return hmac.compare_digest(supplied.encode(), self.token.encode())

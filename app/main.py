"""CodeDrop backend — FastAPI application entry point.

Provides POST /api/pastes and GET /api/pastes/{id} behind the IP ban gate.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncEngine

from app import database
from app.config import settings
from app.errors import CodeDropError
from app.middleware.ban_gate import BanGateMiddleware, BanList
from app.routers import pastes
from app.services.cache import CacheService, PasteCache
from app.services.paste_store import Clock, PasteStore, utcnow
from app.services.pastes import PasteService
from app.services.purge import PurgeSweeper

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
)
logger = logging.getLogger("codedrop")


# ═══════════════ LIFESPAN ═══════════════

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("CodeDrop backend starting | port=%s", settings.port)

    await database.init_db(app.state.engine)

    redis_ok = await app.state.cache.connect()
    logger.info("Redis: %s", "connected" if redis_ok else "unavailable (using in-memory fallback)")

    await app.state.sweeper.start()

    yield

    await app.state.sweeper.stop()
    await app.state.cache.disconnect()
    await database.close_db(app.state.engine)
    logger.info("CodeDrop backend shutting down")


# ═══════════════ ERROR HANDLERS ═══════════════

async def _handle_service_error(request: Request, exc: CodeDropError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Request failed | %s %s | %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.client_message})


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error | %s %s | %s: %s", request.method, request.url.path, type(exc).__name__, str(exc)[:300])
    return JSONResponse(status_code=500, content={"error": CodeDropError.public_message})


async def _handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        field = ".".join(str(part) for part in errors[0].get("loc", ()) if part != "body")
        message = f"{field}: {errors[0].get('msg', 'invalid')}" if field else errors[0].get("msg", message)
    return JSONResponse(status_code=400, content={"error": message})


# ═══════════════ APP ═══════════════

def create_app(
    engine: AsyncEngine | None = None,
    cache: CacheService | None = None,
    clock: Clock = utcnow,
) -> FastAPI:
    """Build the app around process-scoped DB engine and cache handles."""
    engine = engine or database.engine
    cache = cache or CacheService(settings.redis_url)

    store = PasteStore(database.make_session_factory(engine), clock=clock)
    bans = BanList(cache)

    app = FastAPI(
        title="CodeDrop API",
        description="Expiring code paste sharing",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.engine = engine
    app.state.cache = cache
    app.state.sweeper = PurgeSweeper(store)
    app.state.paste_service = PasteService(store, PasteCache(cache, clock=clock))

    # Added first so CORS wraps it and answers preflights
    app.add_middleware(BanGateMiddleware, bans=bans)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["GET", "POST", "OPTIONS", "PUT", "DELETE"],
        allow_headers=["Origin", "Content-Type", "Accept", "Authorization", settings.write_token_header],
        expose_headers=["Content-Length"],
        max_age=12 * 3600,
    )

    app.add_exception_handler(CodeDropError, _handle_service_error)
    app.add_exception_handler(RequestValidationError, _handle_request_validation)
    app.add_exception_handler(Exception, _handle_unexpected_error)

    app.include_router(pastes.router, prefix="/api/pastes")

    @app.get("/health")
    async def health():
        return {"status": "ok", "cache_backend": cache.backend}

    return app


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        proxy_headers=True,
        forwarded_allow_ips=settings.forwarded_allow_ips,
    )


if __name__ == "__main__":
    run()

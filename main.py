"""FastAPI entrypoint — exposes the loan marketplace chat and portals via REST."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api import chat, documents, lenders, users
from api.deps import get_services
from config import HOST, LOG_LEVEL, PORT
from errors import InvalidCredentialsError, InvalidRequestError, NotFoundError
from extraction.port import ExtractionError
from seed import seed_all, seed_lenders
from services import Services, build_services

logger = logging.getLogger(__name__)


# ── Error mapping ───────────────────────────────────────────────────────
def _error(status: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status, content={"error": message})


async def _invalid_request(request: Request, exc: InvalidRequestError):
    return _error(400, str(exc))


async def _not_found(request: Request, exc: NotFoundError):
    return _error(404, str(exc))


async def _invalid_credentials(request: Request, exc: InvalidCredentialsError):
    return _error(401, str(exc))


async def _http_error(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


async def _extraction_failed(request: Request, exc: ExtractionError):
    logger.error("Extraction failed on %s: %s", request.url.path, exc)
    return _error(502, "Failed to process your request. Please try again.")


# ── App factory ─────────────────────────────────────────────────────────
def create_app(services: Optional[Services] = None) -> FastAPI:
    """
    Build the app. Pass ``services`` to run against prepared stores (tests);
    otherwise they are built on startup from config.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = services is None
        app.state.services = await build_services() if owned else services
        try:
            yield
        finally:
            if owned:
                await app.state.services.close()

    app = FastAPI(title="Loan Marketplace", version="1.0.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(InvalidRequestError, _invalid_request)
    app.add_exception_handler(NotFoundError, _not_found)
    app.add_exception_handler(InvalidCredentialsError, _invalid_credentials)
    app.add_exception_handler(ExtractionError, _extraction_failed)
    app.add_exception_handler(StarletteHTTPException, _http_error)

    app.include_router(chat.router)
    app.include_router(documents.router)
    app.include_router(lenders.router)
    app.include_router(users.router)

    @app.post("/api/seed-lenders", tags=["lenders"])
    async def seed_demo_lenders(bundle: Services = Depends(get_services)):
        created = await seed_lenders(bundle.lenders)
        message = f"Seeded {len(created)} lenders" if created else "Lenders already seeded"
        return {"success": True, "message": message, "created": created}

    @app.post("/api/seed-all", tags=["lenders"])
    async def seed_demo_dataset(bundle: Services = Depends(get_services)):
        counts = await seed_all(bundle)
        return {"success": True, "message": "Database seeded successfully with all test data", "counts": counts}

    return app


logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
app = create_app()


# ── Run ─────────────────────────────────────────────────────────────────
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host=HOST, port=PORT, reload=True)

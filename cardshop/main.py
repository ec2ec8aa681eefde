import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cardshop.api import (
    catalog_router,
    collection_router,
    economy_router,
    health_router,
    rip_router,
    shop_router,
)
from cardshop.config import settings
from cardshop.db.database import init_db
from cardshop.models.failure import (
    UNKNOWN_FAILURE_MESSAGE,
    ErrorResponse,
    FailureKind,
    KnownError,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    await init_db()
    yield


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("cardshop"),
    lifespan=lifespan,
)

app.include_router(catalog_router)
app.include_router(collection_router)
app.include_router(economy_router)
app.include_router(health_router)
app.include_router(rip_router)
app.include_router(shop_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Tighten in production
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(status_code: int, body: ErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


@app.exception_handler(KnownError)
async def known_error_handler(_request: Request, exc: KnownError) -> JSONResponse:
    return _error(exc.status_code, exc.to_response())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed bodies and parameters are reported as invalid_input with status 400."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    return _error(
        status.HTTP_400_BAD_REQUEST,
        ErrorResponse(error=message, kind=FailureKind.INVALID_INPUT),
    )


@app.exception_handler(Exception)
async def unknown_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorResponse(error=UNKNOWN_FAILURE_MESSAGE, kind=FailureKind.UNKNOWN),
    )

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from form_core.api.v1 import router as api_v1_router
from form_core.core.config import settings
from form_core.core.database import async_engine
from form_core.core.exceptions import FormCoreError

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [form-core] %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.debug_form_core_authz:
        logger.info("Verbose action check logging enabled (DEBUG_FORM_CORE_AUTHZ)")

    yield

    # Shutdown
    await async_engine.dispose()


app = FastAPI(
    title="Form Core API",
    description="Forms, entries and per-form access control",
    version="1.0.0",
    lifespan=lifespan,
)


@app.exception_handler(FormCoreError)
async def form_core_error_handler(request: Request, exc: FormCoreError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error": exc.code},
    )


app.include_router(api_v1_router, prefix="/api")

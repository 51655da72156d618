import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from resume_api.config import settings
from resume_api.database import Database, check_integrity, init_db
from resume_api.errors import InvalidInput, NotFound, Unauthenticated, Unavailable
from resume_api.routers import auth, documents
from resume_api.services.identity_service import IdentityVerifier
from resume_api.services.provider_service import IdentityProviderAdmin

logger = logging.getLogger("resume_api")

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(level=settings.log_level.upper())

    settings.data_dir.mkdir(parents=True, exist_ok=True)
    init_db(settings.db_path)
    check_integrity(settings.db_path)

    database = Database(
        settings.db_path,
        pool_size=settings.db_pool_size,
        pool_timeout=settings.db_pool_timeout_seconds,
    )
    verifier = IdentityVerifier.from_settings(settings)
    provider = IdentityProviderAdmin.from_settings(settings)
    app.state.database = database
    app.state.identity_verifier = verifier
    app.state.provider_admin = provider
    logger.info("Resume API started (pool size %d).", settings.db_pool_size)
    yield
    await verifier.aclose()
    await provider.aclose()
    database.dispose()


app = FastAPI(
    title="Resume Builder API",
    description="Per-user storage for resumes and cover letters",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Unauthenticated)
async def unauthenticated_handler(request: Request, exc: Unauthenticated):
    return JSONResponse(
        status_code=401,
        content={"detail": exc.message},
        headers={"WWW-Authenticate": "Bearer"},
    )


@app.exception_handler(InvalidInput)
async def invalid_input_handler(request: Request, exc: InvalidInput):
    return JSONResponse(status_code=400, content={"detail": exc.message})


@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound):
    return JSONResponse(status_code=404, content={"detail": exc.message})


@app.exception_handler(Unavailable)
@app.exception_handler(OperationalError)
@app.exception_handler(PoolTimeoutError)
async def unavailable_handler(request: Request, exc: Exception):
    logger.error("Backend unavailable during %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=503, content={"detail": "Service temporarily unavailable."})


@app.exception_handler(Exception)
async def internal_error_handler(request: Request, exc: Exception):
    logger.error("Unhandled error during %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error."})


app.include_router(auth.router, prefix=settings.api_prefix)
app.include_router(documents.resumes_router, prefix=settings.api_prefix)
app.include_router(documents.letters_router, prefix=settings.api_prefix)


@app.get("/health")
async def health():
    return {"status": "ok", "version": VERSION}

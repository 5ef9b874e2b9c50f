from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError

from growthforge.config import get_settings
from growthforge.database import init_db
from growthforge.middleware.correlation import CorrelationMiddleware
from growthforge.middleware.rate_limit import limiter
from growthforge.routes import auth, users, role_profile, growth, skills, reflections, mental_models, profile
from growthforge.services.errors import ForgeError, ErrorKind, StorageError
from growthforge.services.schema_validator import field_path
from growthforge.utils.logger import logger
from growthforge.utils.metrics import get_snapshot

settings = get_settings()

app = FastAPI(title=settings.app_name, version=settings.app_version)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS - Explicit origins, credentials allowed for the session cookie
allowed_origins = [origin.strip() for origin in settings.allowed_origins.split(",")]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Correlation-ID"],
)
app.add_middleware(CorrelationMiddleware)


@app.exception_handler(ForgeError)
async def forge_error_handler(request: Request, exc: ForgeError):
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    if exc.status_code >= 500:
        logger.error(f"{exc.kind.value}: {exc.message}", extra={"path": request.url.path})
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    """Database failures outside the pipeline surface as storage_error"""
    logger.error(
        f"Database error: {type(exc).__name__}",
        extra={"path": request.url.path, "error": str(exc)[:300], "error_type": type(exc).__name__},
    )
    return JSONResponse(status_code=500, content=StorageError("Database operation failed").to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are invalid_argument (400), not FastAPI's default 422"""
    first = exc.errors()[0] if exc.errors() else {}
    loc = [part for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    detail = f"{field_path(loc)}: {first.get('msg', 'invalid request')}"
    return JSONResponse(
        status_code=400,
        content={"error": ErrorKind.INVALID_ARGUMENT.value, "detail": detail},
    )


# Startup: Initialize database
@app.on_event("startup")
async def startup_event():
    logger.info(f"Starting {settings.app_name}...")
    await init_db()
    logger.info(f"Backend ready at http://{settings.backend_host}:{settings.backend_port}")


# Health check endpoint (minimal response to prevent information disclosure)
@app.get("/health")
async def health_check():
    return {"status": "ok"}


@app.get("/")
async def root():
    return {"status": "ok"}


@app.get("/metrics")
async def metrics():
    return get_snapshot()


# Register routes
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(role_profile.router, prefix="/api/role-profile", tags=["Role Profile"])
app.include_router(growth.router, prefix="/api", tags=["Growth Plan"])
app.include_router(skills.router, prefix="/api/skills", tags=["Skills"])
app.include_router(reflections.router, prefix="/api/reflections", tags=["Reflections"])
app.include_router(mental_models.router, prefix="/api/mental-models", tags=["Mental Models"])
app.include_router(profile.router, prefix="/api/profile", tags=["Profile"])

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "growthforge.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        reload=settings.debug
    )

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy import text
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException
from proptrack.api.responses import error_body
from proptrack.api.routers import auth, users, properties, clients, viewings
from proptrack.core.config import settings
from proptrack.core.database import get_db
from proptrack.core.exceptions import PropTrackError
import logging

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="PropTrack API",
    description="Property listings, client inquiries and viewing scheduling for real-estate agents",
    version="1.0.0"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(users.router, prefix="/api/users", tags=["users"])
app.include_router(properties.router, prefix="/api/properties", tags=["properties"])
app.include_router(clients.router, prefix="/api/clients", tags=["clients"])
app.include_router(viewings.router, prefix="/api/viewings", tags=["viewings"])


def _describe_validation(errors) -> str:
    parts = []
    for err in errors:
        location = ".".join(str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path"))
        parts.append(f"{location}: {err.get('msg')}" if location else err.get("msg", ""))
    return "; ".join(parts)


@app.exception_handler(PropTrackError)
async def proptrack_error_handler(request: Request, exc: PropTrackError):
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, exc.error, **exc.details))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("Validation error", _describe_validation(exc.errors())),
    )


@app.exception_handler(ValidationError)
async def model_validation_handler(request: Request, exc: ValidationError):
    # Filter models built from query parameters inside the routes
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("Validation error", _describe_validation(exc.errors())),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


@app.on_event("startup")
async def startup_event():
    logger.info(f"PropTrack API starting (viewing conflict policy: {settings.VIEWING_CONFLICT_POLICY})")


@app.get("/")
async def root():
    return {
        "message": "PropTrack API",
        "version": app.version,
        "endpoints": {
            "auth": "/api/auth",
            "users": "/api/users",
            "properties": "/api/properties",
            "clients": "/api/clients",
            "viewings": "/api/viewings",
            "health": "/health",
        },
    }


@app.get("/health")
async def health_check(db: Session = Depends(get_db)):
    """Health check endpoint that verifies the database connection"""
    health_status = {
        "status": "healthy",
        "services": {}
    }

    try:
        db.execute(text("SELECT 1"))
        health_status["services"]["database"] = "healthy"
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        health_status["status"] = "unhealthy"
        health_status["services"]["database"] = "unhealthy"
        health_status["error"] = str(e)

    code = status.HTTP_200_OK if health_status["status"] == "healthy" else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(status_code=code, content=health_status)

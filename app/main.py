import logging
import re
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from app.api.v1.api import api_router
from app.core.config import settings
from app.core.errors import AppError, AuthenticationError, StoreError
from fastapi.middleware.cors import CORSMiddleware

logging.basicConfig(level=settings.LOG_LEVEL)
app = FastAPI(title="Forms API")

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

class SensitiveDataFilter(logging.Filter):
    """Masks credential values in log messages and keeps the rest of the line."""

    patterns = [
        (re.compile(r"(bearer\s+)[^\s'\",}]+", re.IGNORECASE), r"\1[REDACTED]"),
        (
            re.compile(r"((?:password|secret|token)['\"]?\s*[:=]\s*['\"]?)[^\s'\",}]+", re.IGNORECASE),
            r"\1[REDACTED]",
        ),
    ]

    def filter(self, record):
        message = record.getMessage()
        sanitized = self.sanitize_message(message)
        if sanitized != message:
            record.msg = sanitized
            record.args = ()
        return True

    def sanitize_message(self, message):
        for pattern, replacement in self.patterns:
            message = pattern.sub(replacement, message)
        return message

for handler in logging.getLogger().handlers:
    handler.addFilter(SensitiveDataFilter())

def sanitize_headers(headers):
    sanitized_headers = {k: (v[:10] + '...') if k.lower() == 'authorization' else v for k, v in headers.items()}
    return sanitized_headers


# Middleware for Logging Requests and Responses
@app.middleware("http")
async def log_request(request: Request, call_next):
    logging.info(f"Received request: {request.method} {request.url}")
    logging.debug(f"Request headers: {sanitize_headers(request.headers)}")
    response = await call_next(request)
    logging.info(f"Response status code: {response.status_code}")
    return response


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logging.error(f"Store error on {request.method} {request.url.path}: {exc.detail}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    logging.info(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.detail}")
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=headers)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logging.error(f"Unexpected error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})

# Include API Router
app.include_router(api_router, prefix="/api/v1")

@app.get("/")
async def root():
    return {"message": "Welcome to the Forms API"}

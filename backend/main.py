"""Video drop FastAPI application."""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from api import videos
from api.middleware import RequestContextMiddleware, RequestSizeLimitMiddleware, client_ip
from api.rate_limit import limiter, rate_limit_exceeded_handler
from config import settings
from storage import StorageError, get_storage
from workers.retention import start_sweeper, stop_sweeper

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="Video Drop API", version="1.0.0")

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

app.add_middleware(SlowAPIMiddleware)
app.add_middleware(RequestSizeLimitMiddleware, max_size=settings.max_upload_bytes)
app.add_middleware(RequestContextMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_methods=["*"],
    allow_headers=["*"],
)


class VideoFiles(StaticFiles):
    """Static serving of the upload directory, never content-sniffed."""

    async def get_response(self, path, scope):
        response = await super().get_response(path, scope)
        response.headers["X-Content-Type-Options"] = "nosniff"
        return response


app.include_router(videos.router)
app.mount("/video", VideoFiles(directory=settings.upload_dir, check_dir=False), name="video")


def _error_body(message: str, code: str | None = None, error: str | None = None) -> dict:
    body = {"success": False, "message": message}
    if code:
        body["code"] = code
    if error is not None and settings.debug:
        body["error"] = error
    return body


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    """Map storage faults to their status; server faults are logged and redacted."""
    if not exc.client_fault:
        logger.error(
            f"{request.method} {request.url.path} | IP: {client_ip(request)} | {exc.code}: {exc}"
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.message, exc.code, error=str(exc)),
        )
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message, exc.code))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    message = "Route not found" if exc.status_code == 404 and exc.detail == "Not Found" else str(exc.detail)
    return JSONResponse(status_code=exc.status_code, content=_error_body(message), headers=exc.headers)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"{request.method} {request.url.path} | IP: {client_ip(request)} | Error: {exc}")
    return JSONResponse(status_code=500, content=_error_body("Internal Server Error", error=str(exc)))


@app.on_event("startup")
async def startup():
    """Create the upload directory and start the retention sweeper."""
    storage = get_storage()
    try:
        storage.init_upload_dir()
    except OSError as e:
        logger.error(f"Upload directory initialization failed: {e}")
        raise
    start_sweeper(storage.sweeper, storage.config.sweep_interval_seconds)
    logger.info(f"Upload directory: {storage.config.upload_dir}")


@app.on_event("shutdown")
async def shutdown():
    await stop_sweeper()


@app.get("/api/health")
async def health():
    return {"status": "ok"}

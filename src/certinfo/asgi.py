"""
FastAPI + Uvicorn ASGI application — single-page certificate upload form.

GET / shows the form; POST / takes the uploaded file from the multipart
field "cert", runs the report pipeline and shows the result below the form.
The report is HTML-escaped by the Jinja2 template (autoescape).

Architecture:
  - FastAPI: request handling and multipart parsing
  - Jinja2: the page template (templates/index.html)
  - Uvicorn: ASGI server (certinfo-web console script)
  - render_all runs in a worker thread so the event loop stays responsive

Entry point for production: uvicorn certinfo.asgi:app --host 0.0.0.0 --port 8080
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from fastapi import FastAPI, File, UploadFile
from fastapi.responses import HTMLResponse, JSONResponse
from jinja2 import Environment, PackageLoader, select_autoescape
from railway import ErrorCode
from railway.failure import FailureDescription
from railway.result import Result

from certinfo import __version__
from certinfo.config import AppSettings, WebSettings
from certinfo.main import configure_structlog, create_adapters
from certinfo.pipeline import render_all

UPLOAD_FIELD = "cert"

_STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.PAYLOAD_TOO_LARGE: 413,
    ErrorCode.TECHNICAL_ERROR: 500,
}

# ─────────────────────── Global State ───────────────────────
# Replaced from AppSettings during startup; defaults apply when the app is
# served without running the lifespan (tests).

_web_settings = WebSettings()
_parser, _hasher = create_adapters()
_templates = Environment(loader=PackageLoader("certinfo"), autoescape=select_autoescape())
log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Load settings and configure logging on startup."""
    global _web_settings

    settings = AppSettings()
    configure_structlog(settings.log_level)
    _web_settings = settings.web

    log.info(
        "web.startup",
        version=__version__,
        log_level=settings.log_level,
        max_upload_bytes=settings.web.max_upload_bytes,
    )
    yield
    log.info("web.shutdown")


app = FastAPI(
    title="certinfo",
    description="Display X.509 certificate info for an uploaded PEM bundle or DER file",
    version=__version__,
    lifespan=lifespan,
)


def render_page(report: str = "", error: str = "") -> str:
    """Render the upload form, with the report (or an error) underneath when given."""
    return _templates.get_template("index.html").render(report=report, error=error)


async def _read_upload(upload: UploadFile | None, limit: int) -> Result[bytes]:
    """Read the uploaded file fully into memory, refusing anything above `limit` bytes."""
    if upload is None:
        return Result.failure(
            ErrorCode.VALIDATION_ERROR, f"missing form file field {UPLOAD_FIELD!r}"
        )
    data = await upload.read(limit + 1)
    if len(data) > limit:
        return Result.failure(
            ErrorCode.PAYLOAD_TOO_LARGE, f"upload exceeds {limit} bytes"
        )
    return Result.success(data)


def _error_page(error: FailureDescription) -> HTMLResponse:
    log.info("web.upload_rejected", code=error.code.value, error=error.message)
    return HTMLResponse(
        render_page(error=error.message),
        status_code=_STATUS_BY_CODE.get(error.code, 500),
    )


@app.get("/", response_class=HTMLResponse)
async def upload_form() -> HTMLResponse:
    """Show the upload form."""
    return HTMLResponse(render_page())


@app.post("/", response_class=HTMLResponse)
async def certificate_info(cert: UploadFile | None = File(default=None)) -> HTMLResponse:
    """
    Analyze the uploaded file and show the report set below the form.

    Returns 400 when the "cert" field is missing and 413 when the upload is
    larger than web.max_upload_bytes.
    """
    upload = await _read_upload(cert, _web_settings.max_upload_bytes)
    if upload.is_failure():
        return _error_page(upload.error())

    report = await asyncio.to_thread(render_all, upload.value(), _parser, _hasher)
    return HTMLResponse(render_page(report=report))


@app.get("/health")
async def health() -> JSONResponse:
    """Liveness probe."""
    return JSONResponse(status_code=200, content={"status": "healthy"})


@app.get("/info")
async def info() -> dict[str, Any]:
    """Application metadata."""
    return {
        "name": "certinfo",
        "version": __version__,
        "max_upload_bytes": _web_settings.max_upload_bytes,
    }


def serve() -> None:
    """Run the upload form under Uvicorn with host/port from AppSettings."""
    import uvicorn

    settings = AppSettings()
    uvicorn.run(
        "certinfo.asgi:app",
        host=settings.web.host,
        port=settings.web.port,
        reload=False,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    serve()

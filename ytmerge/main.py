import asyncio
import logging
import os
import uuid

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from rich.console import Console

from ytmerge.api import download, health, info
from ytmerge.config.settings import config
from ytmerge.core.errors import DeliveryError
from ytmerge.core.logging import log_error, log_warning, setup_logging
from ytmerge.core.state import state
from ytmerge.i18n import i18n
from ytmerge.infra.rate_limit import global_limiter
from ytmerge.infra.redis import close_redis, init_redis
from ytmerge.services.ytdlp import FFmpegCommandBuilder, SubprocessExecutor, YTDLPCommandBuilder
from ytmerge.utils.locale import get_locale

console = Console()

app = FastAPI(
    title=config.api.title,
    version=config.api.version,
    docs_url="/docs" if config.api.debug else None,
    redoc_url=None,
    dependencies=[Depends(global_limiter)],
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.api.cors_origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
    expose_headers=["Content-Disposition", "X-Request-ID"],
)


@app.middleware("http")
async def assign_request_id(request: Request, call_next):
    request.state.request_id = str(uuid.uuid4())
    response = await call_next(request)
    response.headers["X-Request-ID"] = request.state.request_id
    return response


@app.exception_handler(DeliveryError)
async def delivery_error_handler(request: Request, exc: DeliveryError):
    """Failures raised before any byte of the body was sent"""
    locale = get_locale(request.headers.get("accept-language"))
    if exc.status_code >= 500:
        log_error(request, f"{type(exc).__name__}: {exc.reason}")
    else:
        log_warning(request, f"{type(exc).__name__}: {exc.reason}")

    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": i18n.get(exc.message_key, locale, **exc.params)},
    )


# Routes
app.include_router(health.router, tags=["Health"])
app.include_router(info.router, tags=["Info"])
app.include_router(download.router, tags=["Download"])


async def detect_version(cmd) -> str:
    try:
        result = await SubprocessExecutor.run(cmd, timeout=10.0)
    except (OSError, asyncio.TimeoutError):
        return "unavailable"
    if result.returncode != 0:
        return "unavailable"
    lines = result.stdout.decode(errors="ignore").strip().splitlines()
    return lines[0] if lines else "unknown"


@app.on_event("startup")
async def startup_event():
    setup_logging(config.logging)
    os.makedirs(config.download.temp_dir, exist_ok=True)

    state.redis = await init_redis()
    state.ytdlp_version = await detect_version(YTDLPCommandBuilder.build_version_command())
    state.ffmpeg_version = await detect_version(FFmpegCommandBuilder.build_version_command())

    if state.ffmpeg_version == "unavailable":
        logging.getLogger(__name__).warning("ffmpeg not found; merged downloads will fail")
    console.print(f"[green]✓ yt-dlp {state.ytdlp_version}[/green]")
    console.print(f"[bold]🚀 {config.api.title} ready on port {config.api.port}[/bold]")


@app.on_event("shutdown")
async def shutdown_event():
    await close_redis()

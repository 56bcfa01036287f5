import json
import logging
import os
from typing import Optional

from pydantic import BaseModel, Field, validator

logger = logging.getLogger(__name__)

CONFIG_PATH = os.getenv("CONFIG_PATH", "config.json")


class RedisConfig(BaseModel):
    enabled: bool = Field(default=True, description="Connect to Redis on startup")
    url: str = Field(default="redis://localhost:6379", description="Redis connection URL")
    socket_timeout: int = Field(default=5, description="Redis socket timeout in seconds")


class LimitConfig(BaseModel):
    max_requests: int = Field(ge=1, description="Max requests per window")
    window_seconds: int = Field(ge=1, description="Window length in seconds")


class RateLimitConfig(BaseModel):
    enabled: bool = Field(default=True, description="Enable rate limiting")
    global_limit: LimitConfig = Field(
        default_factory=lambda: LimitConfig(max_requests=100, window_seconds=60)
    )
    info_limit: LimitConfig = Field(
        default_factory=lambda: LimitConfig(max_requests=100, window_seconds=60)
    )
    download_limit: LimitConfig = Field(
        default_factory=lambda: LimitConfig(max_requests=10, window_seconds=15 * 60)
    )


class DownloadConfig(BaseModel):
    temp_dir: str = Field(default="temp", description="Directory for merge work files")
    chunk_size: int = Field(default=256 * 1024, ge=1024, description="Read size for streamed bodies")
    socket_timeout: int = Field(default=10, ge=1, description="Socket timeout for yt-dlp")
    retries: int = Field(default=3, ge=0, description="Number of retries for yt-dlp")
    info_timeout: float = Field(default=30.0, gt=0, description="Metadata lookup timeout in seconds")
    transcode_timeout: float = Field(default=3600.0, gt=0, description="ffmpeg merge timeout in seconds")


class YtDlpConfig(BaseModel):
    binary: str = Field(default="yt-dlp", description="yt-dlp executable")
    js_runtime: Optional[str] = Field(default=None, description="JS runtime path (e.g., deno:/usr/local/bin/deno)")
    best_audio_format: str = Field(default="bestaudio", description="Selector used when no audio-only format is listed")


class TranscoderConfig(BaseModel):
    ffmpeg_path: str = Field(default="ffmpeg", description="ffmpeg executable")
    video_codec: str = Field(default="libx264", description="Output video codec")
    audio_codec: str = Field(default="aac", description="Output audio codec")


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    format: str = Field(default="%(message)s", description="Log format")
    enable_rich: bool = Field(default=True, description="Enable rich console logging")

    @validator('level')
    def validate_log_level(cls, v):
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()


class I18nConfig(BaseModel):
    default_locale: str = Field(default="en", description="Default locale")
    supported_locales: list = Field(default=["en", "ja"], description="Supported locales")


class ApiConfig(BaseModel):
    title: str = Field(default="ytmerge API", description="API title")
    version: str = Field(default="1.0.0", description="API version")
    cors_origins: list = Field(default=["*"], description="CORS allowed origins")
    debug: bool = Field(default=False, description="Enable debug mode")
    port: int = Field(default=4000, description="Listen port")


class Config(BaseModel):
    """Main configuration model"""
    redis: RedisConfig = Field(default_factory=RedisConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    download: DownloadConfig = Field(default_factory=DownloadConfig)
    ytdlp: YtDlpConfig = Field(default_factory=YtDlpConfig)
    transcoder: TranscoderConfig = Field(default_factory=TranscoderConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    i18n: I18nConfig = Field(default_factory=I18nConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)

    @classmethod
    def load_from_file(cls, config_path: str = "config.json") -> "Config":
        """Load configuration from JSON file"""
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config_data = json.load(f)
            logger.info(f"Configuration loaded from {config_path}")
            return cls(**config_data)
        except Exception as e:
            logger.error(f"Failed to load config from {config_path}: {str(e)}")
            logger.info("Using default configuration")
        return cls()

    @classmethod
    def load_from_env(cls) -> "Config":
        """Load configuration from environment variables (fallback)"""
        config_data = {}

        if os.getenv("REDIS_URL"):
            config_data["redis"] = {"url": os.getenv("REDIS_URL")}

        rate_limit = {}
        if os.getenv("RATE_LIMIT_ENABLED"):
            rate_limit["enabled"] = os.getenv("RATE_LIMIT_ENABLED").lower() == "true"
        for name in ("global", "download"):
            prefix = name.upper()
            if os.getenv(f"{prefix}_LIMIT_MAX") or os.getenv(f"{prefix}_LIMIT_WINDOW"):
                defaults = getattr(RateLimitConfig(), f"{name}_limit")
                rate_limit[f"{name}_limit"] = {
                    "max_requests": int(os.getenv(f"{prefix}_LIMIT_MAX", defaults.max_requests)),
                    "window_seconds": int(os.getenv(f"{prefix}_LIMIT_WINDOW", defaults.window_seconds)),
                }
        if rate_limit:
            config_data["rate_limit"] = rate_limit

        if os.getenv("TEMP_DIR"):
            config_data["download"] = {"temp_dir": os.getenv("TEMP_DIR")}

        if os.getenv("YT_DLP_BINARY"):
            config_data["ytdlp"] = {"binary": os.getenv("YT_DLP_BINARY")}

        if os.getenv("FFMPEG_PATH"):
            config_data["transcoder"] = {"ffmpeg_path": os.getenv("FFMPEG_PATH")}

        if os.getenv("LOG_LEVEL"):
            config_data["logging"] = {"level": os.getenv("LOG_LEVEL")}

        if os.getenv("DEFAULT_LOCALE"):
            config_data["i18n"] = {"default_locale": os.getenv("DEFAULT_LOCALE")}

        if os.getenv("PORT"):
            config_data["api"] = {"port": int(os.getenv("PORT"))}

        return cls(**config_data) if config_data else cls()


def load_config() -> Config:
    """Load configuration with priority: config.json > env vars > defaults"""
    if os.path.exists(CONFIG_PATH):
        return Config.load_from_file(CONFIG_PATH)
    logger.info(f"Config file not found at {CONFIG_PATH}, checking environment variables")
    return Config.load_from_env()


config = load_config()

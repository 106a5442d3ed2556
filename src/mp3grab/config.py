"""Configuration management for mp3grab."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: list[str] = ["*"]

    # Artifacts
    output_dir: Path = Path("./downloads")
    max_file_age_ms: int = 3_600_000
    cleanup_interval_ms: int = 600_000
    delete_delay_seconds: float = 1.0

    # Remote conversion API (empty URL disables the strategy)
    remote_api_url: str = ""
    remote_api_key: str = ""
    remote_api_timeout_seconds: float = 30.0
    remote_download_timeout_seconds: float = 120.0
    remote_max_download_bytes: int = 100 * 1024 * 1024

    # yt-dlp
    ytdlp_binary: str = "yt-dlp"
    ytdlp_audio_quality: str = "128K"
    ytdlp_player_clients: list[str] = ["default", "android", "ios", "tv_embedded"]
    ytdlp_max_buffer_bytes: int = 10 * 1024 * 1024
    user_agent: str = _DEFAULT_USER_AGENT

    # ffmpeg
    ffmpeg_binary: str = "ffmpeg"
    transcode_timeout_seconds: float = 300.0
    transcode_max_buffer_bytes: int = 50 * 1024 * 1024
    transcode_bitrate: str = "128k"

    # Page proxy
    page_fetch_timeout_seconds: float = 15.0

    @property
    def max_file_age_seconds(self) -> float:
        return self.max_file_age_ms / 1000.0

    @property
    def cleanup_interval_seconds(self) -> float:
        return self.cleanup_interval_ms / 1000.0

    def ensure_directories(self) -> None:
        """Create required directories if they don't exist."""
        self.output_dir.mkdir(parents=True, exist_ok=True)


# Global settings instance
settings = Settings()

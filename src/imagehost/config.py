"""Application configuration builder."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine


class AppSettings(BaseSettings):
    """Environment driven settings (``IMAGEHOST_`` prefix)."""

    model_config = SettingsConfigDict(env_prefix="IMAGEHOST_")

    database_url: str = Field(
        default="sqlite+aiosqlite:///imagehost.db",
        description="Async SQLAlchemy URL of the resource store.",
    )
    media_root: Path = Field(
        default=Path("media"),
        description="Filesystem root of the blob store.",
    )
    cleanup_interval_ms: int = Field(
        default=60_000,
        description="Automatic sweep cadence in milliseconds; <= 0 means manual-only.",
    )
    sweep_batch_size: int = Field(default=500, ge=1)
    blob_delete_batch_size: int = Field(default=50, ge=1)
    keepalive_seconds: float = Field(default=25.0, gt=0)
    album_open_window_seconds: int = Field(
        default=60,
        ge=1,
        description="Countdown armed when an album image is first opened.",
    )
    guest_open_window_seconds: int = Field(
        default=300,
        ge=1,
        description="Countdown armed when a guest image is first opened.",
    )
    max_upload_bytes: int = Field(default=10 * 1024 * 1024, ge=1)
    allowed_content_types: tuple[str, ...] = Field(
        default=("image/jpeg", "image/png", "image/webp", "image/gif"),
    )
    subscriber_queue_size: int = Field(default=100, ge=1)
    log_level: str = Field(default="INFO")


@dataclass(slots=True)
class MediaPaths:
    root: Path
    images: Path


@dataclass(slots=True)
class AppConfig:
    settings: AppSettings
    media_paths: MediaPaths
    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]

    @property
    def open_windows(self) -> dict[str, int]:
        return {
            "album": self.settings.album_open_window_seconds,
            "guest": self.settings.guest_open_window_seconds,
        }

    @property
    def sweep_interval_seconds(self) -> float | None:
        """Return the sweep cadence or ``None`` when automatic sweeping is off."""
        if self.settings.cleanup_interval_ms <= 0:
            return None
        return self.settings.cleanup_interval_ms / 1000.0


def _ensure_media_paths(paths: MediaPaths) -> None:
    paths.root.mkdir(parents=True, exist_ok=True)
    paths.images.mkdir(parents=True, exist_ok=True)


def load_config(settings: AppSettings | None = None) -> AppConfig:
    """Load configuration from environment (SQLite by default)."""
    resolved = settings or AppSettings()
    media_paths = MediaPaths(root=resolved.media_root, images=resolved.media_root / "images")
    _ensure_media_paths(media_paths)

    engine = create_async_engine(resolved.database_url, future=True)
    session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    return AppConfig(
        settings=resolved,
        media_paths=media_paths,
        engine=engine,
        session_factory=session_factory,
    )

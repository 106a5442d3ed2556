"""Artifact data models."""

from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, Field


class Artifact(BaseModel):
    """A materialized output file awaiting download or eviction."""

    path: Path = Field(..., description="Absolute path inside the output directory")
    created_at: datetime = Field(..., description="Last-modified time (UTC)")
    size_bytes: int = Field(..., description="File size in bytes")

    @property
    def filename(self) -> str:
        """Return the bare filename used in download links."""
        return self.path.name

    @classmethod
    def from_path(cls, path: Path) -> "Artifact":
        """Build an Artifact by stat-ing an existing file.

        Raises:
            FileNotFoundError: If the file does not exist.
        """
        stat = path.stat()
        return cls(
            path=path,
            created_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            size_bytes=stat.st_size,
        )

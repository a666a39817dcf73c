"""
File storage abstraction for book assets.

Files are organized as:
- media/pdf/{isbn}.pdf        - Book PDFs
- media/image/{isbn}.{ext}    - Cover images
- media/{kind}/.staging/      - Uploads written but not yet promoted

Writes are two-phase: ``stage`` puts the bytes on disk under a temporary
name, ``promote`` renames them into place. The staging directory sits next
to the final one so the rename is atomic.
"""
import logging
import os
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from domain.models import AssetKind, AssetUpload
from settings import settings

logger = logging.getLogger(__name__)

STAGING_DIRNAME = ".staging"


def asset_name(isbn: str, kind: AssetKind, extension: str) -> str:
    """Deterministic asset file name for a book: ``{isbn}.{extension}``."""
    ext = "pdf" if kind is AssetKind.PDF else extension.lower().lstrip(".")
    return f"{isbn}.{ext}"


@dataclass
class StagedAsset:
    kind: AssetKind
    name: str  # final file name
    staging_path: Path


class FileStorage:
    """
    Local file storage implementation.
    """

    def __init__(self, media_root: Optional[str] = None):
        self.media_root = Path(media_root or settings.MEDIA_ROOT)
        self.media_root.mkdir(parents=True, exist_ok=True)

    def get_kind_dir(self, kind: AssetKind) -> Path:
        """Get the directory holding promoted assets of one kind."""
        path = self.media_root / kind.value
        path.mkdir(parents=True, exist_ok=True)
        return path

    def get_staging_dir(self, kind: AssetKind) -> Path:
        path = self.get_kind_dir(kind) / STAGING_DIRNAME
        path.mkdir(parents=True, exist_ok=True)
        return path

    def stage(self, upload: AssetUpload, name: str) -> StagedAsset:
        """
        Write an upload to the staging area and fsync it.

        Returns:
            Handle used to promote or discard the file later
        """
        staging_path = self.get_staging_dir(upload.kind) / f"{uuid.uuid4()}.{name}"
        with open(staging_path, "wb") as f:
            f.write(upload.content)
            f.flush()
            os.fsync(f.fileno())
        return StagedAsset(kind=upload.kind, name=name, staging_path=staging_path)

    def promote(self, staged: StagedAsset) -> str:
        """Move a staged file to its final name, replacing any previous file."""
        target = self.get_kind_dir(staged.kind) / staged.name
        os.replace(staged.staging_path, target)
        return staged.name

    def discard(self, staged: StagedAsset) -> None:
        try:
            staged.staging_path.unlink()
        except FileNotFoundError:
            pass

    def get_absolute_path(self, kind: AssetKind, name: str) -> Path:
        """Convert an asset name to an absolute path."""
        return self.get_kind_dir(kind) / name

    def file_exists(self, kind: AssetKind, name: str) -> bool:
        """Check if a file exists."""
        return self.get_absolute_path(kind, name).exists()

    def delete_file(self, kind: AssetKind, name: str) -> bool:
        """Delete a file. Returns True if deleted."""
        path = self.get_absolute_path(kind, name)
        if path.exists():
            path.unlink()
            return True
        return False

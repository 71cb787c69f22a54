"""Filesystem storage for rendered images."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List

from ..engine.base import CachedFile

IMAGE_SUFFIXES = {".png", ".bmp"}


class FilesystemCacheStore:
    """Images stored flat in one directory as ``<key>.png`` or ``<key>.bmp``.

    A key may have files with several extensions; they are listed and
    deleted together.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory).expanduser()

    def _files_by_key(self) -> Dict[str, List[Path]]:
        if not self.directory.exists():
            return {}
        grouped: Dict[str, List[Path]] = {}
        for path in sorted(self.directory.iterdir()):
            if path.is_file() and path.suffix.lower() in IMAGE_SUFFIXES:
                grouped.setdefault(path.stem, []).append(path)
        return grouped

    def list_cache_files(self) -> List[CachedFile]:
        cached: List[CachedFile] = []
        for key, paths in self._files_by_key().items():
            try:
                modified_at = max(path.stat().st_mtime for path in paths)
            except FileNotFoundError:
                continue
            cached.append(CachedFile(key=key, modified_at=modified_at))
        return cached

    def delete_cache_file(self, key: str) -> None:
        for suffix in sorted(IMAGE_SUFFIXES):
            (self.directory / f"{key}{suffix}").unlink(missing_ok=True)

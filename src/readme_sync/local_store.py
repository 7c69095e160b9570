"""Local document store: path validation, encoding-aware read/write.

Documents live under one root directory as
``<category>/[<parent>/]<slug>.md``. All paths crossing this module's
boundary are POSIX-style and relative to that root; the store resolves
them and refuses anything that escapes the root.

The sync methods are plain file I/O. The ``*_async`` wrappers run them in
the thread pool via ``run_sync()`` so the engine never blocks its loop.
"""

from __future__ import annotations

import logging
from pathlib import Path

from charset_normalizer import from_bytes

from .core.async_utils import run_sync
from .document.model import DOCUMENT_EXTENSION

logger = logging.getLogger(__name__)


class LocalStore:
    """File-backed document store rooted at a docs directory."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).resolve()

    # =========================================================================
    # Path Validation
    # =========================================================================

    def resolve(self, relative_path: str) -> Path:
        """Resolve a store-relative path, refusing to leave the root.

        Raises:
            ValueError: If the path is absolute or resolves outside the root.
        """
        candidate = Path(relative_path)
        if candidate.is_absolute():
            raise ValueError(f"Path must be relative to {self.root}: {relative_path}")
        resolved = (self.root / candidate).resolve()
        if not resolved.is_relative_to(self.root):
            raise ValueError(
                f"Path is outside the docs directory: {resolved} not under {self.root}"
            )
        return resolved

    def exists(self, relative_path: str) -> bool:
        return self.resolve(relative_path).is_file()

    # =========================================================================
    # File Read/Write
    # =========================================================================

    def read(self, relative_path: str) -> str:
        """Read a document, detecting its encoding.

        Empty files read as ``""``; undetectable content is decoded as UTF-8
        with replacement characters.
        """
        raw = self.resolve(relative_path).read_bytes()
        if not raw:
            return ""

        result = from_bytes(raw).best()
        if result is None:
            logger.debug("Encoding detection failed for %s, using utf-8", relative_path)
            return raw.decode("utf-8", errors="replace")
        return str(result)

    def write(self, relative_path: str, content: str) -> int:
        """Write a document as UTF-8, creating parent directories.

        Returns:
            Number of bytes written.
        """
        path = self.resolve(relative_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        encoded = content.encode("utf-8")
        path.write_bytes(encoded)
        return len(encoded)

    def delete(self, relative_path: str) -> None:
        """Remove a document and any parent directories left empty."""
        path = self.resolve(relative_path)
        path.unlink()
        for directory in path.parents:
            if directory == self.root or not directory.is_relative_to(self.root):
                break
            if any(directory.iterdir()):
                break
            directory.rmdir()

    def discover(self) -> list[str]:
        """Every document path under the root, sorted, relative and POSIX-style."""
        if not self.root.is_dir():
            return []
        return sorted(
            path.relative_to(self.root).as_posix()
            for path in self.root.rglob(f"*{DOCUMENT_EXTENSION}")
            if path.is_file()
        )

    # =========================================================================
    # Async wrappers
    # =========================================================================

    async def read_async(self, relative_path: str) -> str:
        return await run_sync(self.read, relative_path)

    async def write_async(self, relative_path: str, content: str) -> int:
        return await run_sync(self.write, relative_path, content)

    async def delete_async(self, relative_path: str) -> None:
        await run_sync(self.delete, relative_path)

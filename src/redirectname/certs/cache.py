"""Persistent key/value storage for certificate material.

Keys are either domain names (certificates and their private keys) or
identifiers such as ``acme_account+key`` and ``<token>+http-01``. Values are
opaque bytes.

Layout on disk (one file per key):
    certs/
        acme_account+key
        go.example.com
        abc123+http-01
"""

from __future__ import annotations

import asyncio
import os
import tempfile
from pathlib import Path
from typing import Protocol

from redirectname.errors import CacheMiss


class Cache(Protocol):
    """Interface shared by the certificate stores."""

    async def get(self, key: str) -> bytes: ...

    async def put(self, key: str, data: bytes) -> None: ...

    async def delete(self, key: str) -> None: ...


class DirCache:
    """Certificate cache backed by a directory on the local filesystem.

    Blocking file I/O runs in a worker thread. Writes go to a temporary file
    that is renamed over the target, so readers never see a partial entry.
    """

    def __init__(self, directory: str | Path) -> None:
        """Initialize the cache.

        Args:
            directory: Directory holding one file per key. Created on first put.
        """
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        name = Path(key).name
        if not name or name != key or name in (".", ".."):
            raise ValueError(f"Invalid cache key: {key!r}")
        return self.directory / name

    async def get(self, key: str) -> bytes:
        path = self._path(key)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError:
            raise CacheMiss(key) from None

    async def put(self, key: str, data: bytes) -> None:
        path = self._path(key)
        await asyncio.to_thread(self._write, path, data)

    async def delete(self, key: str) -> None:
        path = self._path(key)
        await asyncio.to_thread(path.unlink, missing_ok=True)

    def _write(self, path: Path, data: bytes) -> None:
        self.directory.mkdir(mode=0o700, parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

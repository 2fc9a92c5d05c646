"""TOML file backend: a single config file or a directory of ``*.toml`` files."""

from __future__ import annotations

import asyncio
import contextlib
import os
import tempfile
import tomllib
from pathlib import Path
from typing import Any

import tomli_w

from pingap_config.exceptions import (
    BackendError,
    NetworkError,
    NotFoundError,
    RejectedError,
    ValidationError,
)
from pingap_config.models import (
    BASIC_CATEGORY,
    BASIC_NAMESPACE,
    persisted_path,
    validate_section,
)
from pingap_config.utils.logging import describe_patch, logger


class FileBackend:
    """Stores the pingap configuration in TOML on the local filesystem.

    With a directory, every ``*.toml`` file below it is read and merged into
    one document. A save rewrites only the file that already holds the
    section, or ``<dir>/<group>.toml`` (``basic.toml`` for the basic section)
    when no file does yet.
    """

    def __init__(self, path: str | os.PathLike[str], *, admin: bool = True) -> None:
        if not str(path).strip():
            raise ValueError("Config path is empty")
        self._path = Path(path).expanduser()
        self._admin = admin
        # sections of different namespaces may share one file
        self._write_lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    async def fetch(self) -> dict[str, Any]:
        return await asyncio.to_thread(self._read_document)

    async def save(self, namespace: str, category: str, patch: dict[str, Any]) -> None:
        async with self._write_lock:
            await asyncio.to_thread(self._save, namespace, category, patch)

    async def close(self) -> None:
        return None

    def _files(self) -> list[Path]:
        return sorted(self._path.glob("**/*.toml"))

    def _read_document(self) -> dict[str, Any]:
        if self._admin and not self._path.exists():
            logger.info("Config path %s does not exist, starting empty", self._path)
            return {}
        try:
            if self._path.is_dir():
                data = b"\n".join(f.read_bytes() for f in self._files())
            else:
                data = self._path.read_bytes()
        except OSError as e:
            raise NetworkError(f"Failed to read {self._path}: {e}") from e
        return _loads(data.decode("utf-8"), self._path)

    def _target_file(self, key_path: tuple[str, ...]) -> Path:
        if not self._path.is_dir():
            return self._path
        for f in self._files():
            if _lookup(_read_toml(f), key_path) is not None:
                return f
        return self._path / f"{key_path[0]}.toml"

    def _save(self, namespace: str, category: str, patch: dict[str, Any]) -> None:
        if namespace == BASIC_NAMESPACE and category != BASIC_CATEGORY:
            raise NotFoundError(f"Unknown section {namespace}/{category}")
        key_path = persisted_path(namespace, category)
        target = self._target_file(key_path)
        document = _read_toml(target) if target.exists() else {}

        table = document
        for key in key_path:
            table = table.setdefault(key, {})
        for field, value in patch.items():
            # TOML has no null; an unset field is an absent key
            if value is None:
                table.pop(field, None)
            else:
                table[field] = value
        try:
            table.update(validate_section(namespace, table))
        except ValidationError as e:
            raise RejectedError(
                e.message,
                suggestion="The patch was not applied; fix the values and submit again",
            ) from e

        _atomic_write(target, tomli_w.dumps(document))
        logger.debug("Saved %s/%s to %s: %s", namespace, category, target, describe_patch(patch))


def _lookup(document: dict[str, Any], key_path: tuple[str, ...]) -> Any:
    value: Any = document
    for key in key_path:
        if not isinstance(value, dict) or key not in value:
            return None
        value = value[key]
    return value


def _loads(text: str, source: Path) -> dict[str, Any]:
    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise BackendError(f"Invalid TOML in {source}: {e}") from e


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise NetworkError(f"Failed to read {path}: {e}") from e
    return _loads(text, path)


def _atomic_write(path: Path, content: str) -> None:
    """Write via temp file + replace so readers never see a half-written file."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp, path)
        except BaseException:
            with contextlib.suppress(OSError):
                os.unlink(tmp)
            raise
    except OSError as e:
        raise NetworkError(f"Failed to write {path}: {e}") from e

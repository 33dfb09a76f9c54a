"""Named layout persistence

All named layouts live in one JSON file:
- atomic write (temp + rename)
- sha256 checksum
- version field
- corrupt or mismatched files are skipped with a warning

LayoutStore wraps the file with save/load/list/delete by name.
"""

import hashlib
import json
import os
import tempfile
import time
from pathlib import Path
from typing import Any

from ..config import METRICS_ENABLED, PERSIST_FILE, PERSIST_VERSION
from ..errors import InvalidSnapshot
from ..telemetry import get_logger, metrics
from .types import LayoutSnapshot

logger = get_logger(__name__)


def _calculate_checksum(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def _encode(data: dict[str, Any]) -> bytes:
    return json.dumps(data, ensure_ascii=False, indent=2, sort_keys=True).encode("utf-8")


def _count_error(op: str, reason: str) -> None:
    if METRICS_ENABLED:
        metrics.inc("persist.error", {"op": op, "reason": reason})


def save(
    layouts: dict[str, dict],
    path: Path | None = None,
    version: int = PERSIST_VERSION,
) -> bool:
    """Write all named layouts.

    Args:
        layouts: {name: snapshot.to_dict()}
        path: target file, defaults to config
        version: format version

    Returns:
        True on success
    """
    path = path or PERSIST_FILE

    try:
        data = {
            "version": version,
            "saved_at": time.time(),
            "layouts": layouts,
        }
        data["checksum"] = _calculate_checksum(_encode(data))
        json_bytes = _encode(data)

        path.parent.mkdir(parents=True, exist_ok=True)

        fd, temp_path = tempfile.mkstemp(prefix="multistream_layouts_", suffix=".tmp", dir=path.parent)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(json_bytes)
            os.replace(temp_path, path)
        except Exception:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise

        logger.info(f"[Persist] Saved {len(layouts)} layouts to {path}")
        return True

    except Exception as e:
        logger.error(f"[Persist] Save failed: {e}")
        _count_error("save", "io")
        return False


def load(
    path: Path | None = None,
    version: int = PERSIST_VERSION,
) -> dict[str, dict] | None:
    """Read all named layouts.

    Version and checksum are verified; any failure returns None.

    Returns:
        {name: snapshot dict}, or None if missing/corrupt
    """
    path = path or PERSIST_FILE

    if not path.exists():
        logger.debug(f"[Persist] File not found: {path}")
        return None

    try:
        data = json.loads(path.read_bytes().decode("utf-8"))
        if not isinstance(data, dict):
            logger.warning("[Persist] Unexpected top-level type")
            _count_error("load", "format")
            return None

        file_version = data.get("version", 1)
        if file_version != version:
            logger.warning(f"[Persist] Version mismatch: file={file_version}, expected={version}")
            _count_error("load", "version")
            return None

        stored_checksum = data.pop("checksum", None)
        if stored_checksum and _calculate_checksum(_encode(data)) != stored_checksum:
            logger.warning("[Persist] Checksum mismatch")
            _count_error("load", "checksum")
            return None

        layouts = data.get("layouts", {})
        logger.info(f"[Persist] Loaded {len(layouts)} layouts")
        return layouts

    except json.JSONDecodeError as e:
        logger.warning(f"[Persist] Invalid JSON: {e}")
        _count_error("load", "json")
        return None

    except Exception as e:
        logger.error(f"[Persist] Load failed: {e}")
        _count_error("load", "unknown")
        return None


def delete(path: Path | None = None) -> bool:
    """Delete the layouts file."""
    path = path or PERSIST_FILE

    try:
        if path.exists():
            os.unlink(path)
            logger.info(f"[Persist] Deleted: {path}")
        return True
    except Exception as e:
        logger.error(f"[Persist] Delete failed: {e}")
        _count_error("delete", "io")
        return False


class LayoutStore:
    """Named layouts backed by one persisted file.

    The file is re-read on every call, so several processes sharing the
    directory see each other's saves.
    """

    def __init__(self, path: Path | None = None):
        self.path = path or PERSIST_FILE

    def list_names(self) -> list[str]:
        return sorted((load(self.path) or {}).keys())

    def save(self, name: str, snapshot: LayoutSnapshot) -> bool:
        """Save (or overwrite) a named layout. Previews are never stored.

        An existing file that cannot be read is left untouched and the save
        is refused, so the other layouts in it are not overwritten.
        """
        layouts = load(self.path)
        if layouts is None:
            if self.path.exists():
                logger.error(f"[Persist] Refusing to save {name!r}: {self.path} is unreadable")
                _count_error("save", "unreadable")
                return False
            layouts = {}
        payload = snapshot.to_dict()
        payload.pop("previews", None)
        payload.pop("version", None)
        layouts[name] = payload
        return save(layouts, self.path)

    def load(self, name: str) -> LayoutSnapshot | None:
        """Load a named layout.

        Returns:
            the snapshot, or None if absent or unreadable
        """
        payload = (load(self.path) or {}).get(name)
        if payload is None:
            return None
        try:
            return LayoutSnapshot.from_dict(payload)
        except InvalidSnapshot as e:
            logger.warning(f"[Persist] Layout {name!r} is invalid: {e}")
            _count_error("load", "schema")
            return None

    def delete(self, name: str) -> bool:
        """Delete a named layout.

        Returns:
            False if it did not exist or the write failed
        """
        layouts = load(self.path) or {}
        if name not in layouts:
            return False
        del layouts[name]
        return save(layouts, self.path)

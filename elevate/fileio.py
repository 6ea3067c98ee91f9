"""Text, JSON and YAML codecs plus atomic file writes for Elevate."""

from __future__ import annotations

import fcntl
import json
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml


def read_text(path: Path) -> str:
    """Read a text file, returning empty string if missing."""
    if not path.exists():
        return ""
    return path.read_text(encoding="utf-8")


def read_yaml(path: Path) -> dict[str, Any]:
    """Read a YAML file, returning empty dict if missing or empty."""
    text = read_text(path)
    if not text.strip():
        return {}
    result = yaml.safe_load(text)
    return result if isinstance(result, dict) else {}


def decode_json(raw: bytes) -> Any:
    """Decode a stored JSON value. Empty payloads decode to None."""
    text = raw.decode("utf-8")
    if not text.strip():
        return None
    return json.loads(text)


def encode_json(data: Any) -> bytes:
    return (json.dumps(data, indent=2, ensure_ascii=False) + "\n").encode("utf-8")


def decode_yaml(raw: bytes) -> Any:
    text = raw.decode("utf-8")
    if not text.strip():
        return None
    return yaml.safe_load(text)


def encode_yaml(data: Any) -> bytes:
    content = yaml.dump(data, default_flow_style=False, allow_unicode=True, sort_keys=False)
    return content.encode("utf-8")


def atomic_write(path: Path, content: bytes, suffix: str = ".tmp") -> None:
    """Atomic write with file locking: temp file + flock + rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=".tmp_", suffix=suffix)
    try:
        with os.fdopen(fd, "wb") as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            try:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        os.rename(temp_path, path)
    except Exception:
        if os.path.exists(temp_path):
            os.unlink(temp_path)
        raise

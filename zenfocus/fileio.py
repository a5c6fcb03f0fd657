"""Atomic document I/O for the ZenFocus workspace.

Documents are YAML or JSON mappings, chosen by file suffix.
"""

from __future__ import annotations

import fcntl
import json
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml


YAML_SUFFIXES = {".yaml", ".yml"}


def _is_yaml(path: Path) -> bool:
    return path.suffix.lower() in YAML_SUFFIXES


def read_document(path: Path) -> dict[str, Any]:
    """Read a YAML or JSON mapping, returning {} if missing, empty or not a mapping."""
    if not path.exists():
        return {}
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    data = yaml.safe_load(text) if _is_yaml(path) else json.loads(text)
    return data if isinstance(data, dict) else {}


def dump_document(path: Path, data: dict[str, Any]) -> str:
    if _is_yaml(path):
        return yaml.safe_dump(data, default_flow_style=False, allow_unicode=True, sort_keys=False)
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def write_document_atomic(path: Path, data: dict[str, Any]) -> None:
    """Serialize *data* by suffix and replace *path* in one rename.

    The temp file is flock'ed while written and fsync'ed before the rename,
    so readers only ever see the old or the new document.
    """
    content = dump_document(path, data)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=".tmp_", suffix=path.suffix)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            try:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        os.replace(temp_path, path)
    except Exception:
        if os.path.exists(temp_path):
            os.unlink(temp_path)
        raise

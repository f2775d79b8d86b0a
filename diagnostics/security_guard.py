from __future__ import annotations

import re
from pathlib import Path

_SESSION_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]{0,127}$")


def validate_session_id(session_id: str) -> str:
    if not isinstance(session_id, str) or not _SESSION_ID_RE.match(session_id):
        raise ValueError(f"Invalid session id: {session_id!r}")
    if ".." in session_id:
        raise ValueError("Session id may not contain '..'.")
    return session_id


def resolve_under_root(root: Path, rel: str) -> Path:
    rel_path = Path(rel)
    if rel_path.is_absolute():
        raise ValueError("Absolute paths are not allowed.")
    if rel.startswith(("\\\\", "//")):
        raise ValueError("UNC paths are not allowed.")
    if rel_path.drive:
        raise ValueError("Drive paths are not allowed.")
    if any(part == ".." for part in rel_path.parts):
        raise ValueError("Path traversal is not allowed.")
    resolved_root = root.resolve()
    resolved = (resolved_root / rel_path).resolve()
    try:
        resolved.relative_to(resolved_root)
    except Exception as exc:
        raise ValueError("Resolved path escapes root.") from exc
    return resolved

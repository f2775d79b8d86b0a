from __future__ import annotations

import hashlib
import json
import logging
import re
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from diagnostics.security_guard import resolve_under_root, validate_session_id

logger = logging.getLogger(__name__)

BUNDLE_FILENAME = "bundle.py"
HISTORY_FILENAME = "bundle_history.json"
DEFAULT_HISTORY_LIMIT = 10

_VERSION_PATTERNS = (
    re.compile(r"__version__\s*=\s*[\"']([^\"']+)[\"']"),
    re.compile(r"version[\"']?\s*[:=]\s*[\"']([^\"']+)[\"']", re.IGNORECASE),
    re.compile(r"@version\s+(\S+)", re.IGNORECASE),
    re.compile(r"\bv(\d+\.\d+\.\d+)\b", re.IGNORECASE),
)


@dataclass(frozen=True)
class BundleInfo:
    session_id: str
    path: str
    bundle_hash: str
    version: str
    size: int
    downloaded_at: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional["BundleInfo"]:
        try:
            return cls(
                session_id=str(data["session_id"]),
                path=str(data.get("path", "")),
                bundle_hash=str(data["bundle_hash"]),
                version=str(data.get("version", "")),
                size=int(data.get("size", 0)),
                downloaded_at=float(data.get("downloaded_at", 0.0)),
            )
        except (KeyError, TypeError, ValueError):
            return None


def compute_bundle_hash(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:8]


def extract_version(text: str) -> str:
    for pattern in _VERSION_PATTERNS:
        match = pattern.search(text)
        if match and match.group(1):
            return match.group(1)
    return f"session-{int(time.time())}"


class BundleStore:
    """Bundles on disk laid out as ``<root>/<session_id>/bundle.py``."""

    def __init__(self, root: Path, history_limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        self._root = Path(root)
        self._history_limit = max(1, int(history_limit))

    @property
    def root(self) -> Path:
        return self._root

    def bundle_path(self, session_id: str) -> Path:
        validate_session_id(session_id)
        return resolve_under_root(self._root, f"{session_id}/{BUNDLE_FILENAME}")

    def write_bundle(self, session_id: str, source: str) -> Path:
        path = self.bundle_path(session_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(source, encoding="utf-8")
        return path

    def read_bundle(self, session_id: str) -> str:
        return self.bundle_path(session_id).read_text(encoding="utf-8")

    def list_bundles(self) -> List[str]:
        if not self._root.exists():
            return []
        sessions = []
        for session_dir in self._root.iterdir():
            if session_dir.is_dir() and (session_dir / BUNDLE_FILENAME).exists():
                sessions.append(session_dir.name)
        return sorted(sessions)

    def describe(self, session_id: str, source: str) -> BundleInfo:
        return BundleInfo(
            session_id=session_id,
            path=str(self.bundle_path(session_id)),
            bundle_hash=compute_bundle_hash(source),
            version=extract_version(source),
            size=len(source.encode("utf-8")),
            downloaded_at=time.time(),
        )

    # --- history ----------------------------------------------------------

    def _history_path(self) -> Path:
        return self._root / HISTORY_FILENAME

    def load_history(self) -> List[BundleInfo]:
        data, error = _load_json(self._history_path())
        if data is None:
            if error and error != "missing file":
                logger.warning("bundle history unreadable: %s", error)
            return []
        history = []
        for item in data:
            if isinstance(item, dict):
                info = BundleInfo.from_dict(item)
                if info is not None:
                    history.append(info)
        return history

    def add_to_history(self, info: BundleInfo) -> bool:
        """Record ``info`` newest-first; returns False for a duplicate."""
        history = self.load_history()
        for item in history:
            if item.session_id == info.session_id and item.bundle_hash == info.bundle_hash:
                logger.info("bundle %s (%s) already in history", info.session_id, info.bundle_hash)
                return False
        history.insert(0, info)
        history = history[: self._history_limit]
        path = self._history_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps([item.to_dict() for item in history], indent=2), encoding="utf-8")
        return True


def _load_json(path: Path) -> Tuple[Optional[List[Any]], Optional[str]]:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None, "missing file"
    except OSError as exc:
        return None, f"io error: {exc}"
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        return None, f"invalid json: {exc.msg}"
    if not isinstance(data, list):
        return None, "not a list"
    return data, None

from __future__ import annotations

import copy
import json
import logging
import time
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Any, Callable, Dict, List, Mapping, Optional

from settings import get_settings

logger = logging.getLogger(__name__)

Listener = Callable[[Any], None]

DATA_PATH = "irrigation/data"
CONTROL_PATH = "irrigation/control"
LAST_SEEN_PATH = "irrigation/status/lastSeen"
SOIL_HISTORY_PATH = "irrigation/history/soil"


def _split(path: str) -> List[str]:
    parts = [part for part in path.strip("/").split("/") if part]
    if not parts:
        raise ValueError("Store path must not be empty.")
    return parts


def _related(a: str, b: str) -> bool:
    """True when one path is an ancestor of (or equal to) the other."""
    return a == b or a.startswith(b + "/") or b.startswith(a + "/")


class Subscription:
    """Cancellable handle returned by ``subscribe``; ``unsubscribe`` is idempotent."""

    def __init__(self, cancel: Callable[[], None]) -> None:
        self._cancel: Optional[Callable[[], None]] = cancel

    @property
    def active(self) -> bool:
        return self._cancel is not None

    def unsubscribe(self) -> None:
        cancel, self._cancel = self._cancel, None
        if cancel is not None:
            cancel()

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *_exc: object) -> None:
        self.unsubscribe()


class RealtimeStore:
    """Path-addressed JSON tree with value listeners.

    Listeners receive the full value at their own path (a snapshot), once on
    subscribe and again after every write touching that path or any of its
    ancestors or descendants.
    """

    def __init__(
        self,
        persistence_path: Optional[Path] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._root: Dict[str, Any] = {}
        self._listeners: Dict[int, tuple[str, Listener]] = {}
        self._next_id = 0
        self.persistence_path = persistence_path
        self._clock = clock
        self._lock = Lock()
        if persistence_path:
            persistence_path.parent.mkdir(parents=True, exist_ok=True)
            self._load_from_disk()

    def server_timestamp(self) -> int:
        """Milliseconds since the epoch according to the store's clock."""
        return int(self._clock() * 1000)

    def get(self, path: str) -> Any:
        with self._lock:
            return copy.deepcopy(self._lookup(_split(path)))

    def set(self, path: str, value: Any) -> None:
        parts = _split(path)
        with self._lock:
            if value is None:
                self._delete(parts)
            else:
                parent = self._ensure_parent(parts)
                parent[parts[-1]] = copy.deepcopy(value)
            self._persist()
        self._notify(path)

    def update(self, path: str, values: Mapping[str, Any]) -> None:
        """Write several children of ``path`` in one step.

        Listeners never observe a state where only some of ``values`` applied.
        """
        parts = _split(path)
        with self._lock:
            node = self._lookup(parts)
            if not isinstance(node, dict):
                node = {}
                self._ensure_parent(parts)[parts[-1]] = node
            for key, value in values.items():
                if value is None:
                    node.pop(key, None)
                else:
                    node[key] = copy.deepcopy(value)
            self._persist()
        self._notify(path)

    def delete(self, path: str) -> None:
        self.set(path, None)

    def subscribe(self, path: str, listener: Listener) -> Subscription:
        normalized = "/".join(_split(path))
        with self._lock:
            listener_id = self._next_id
            self._next_id += 1
            self._listeners[listener_id] = (normalized, listener)
            current = copy.deepcopy(self._lookup(normalized.split("/")))

        listener(current)
        return Subscription(lambda: self._remove_listener(listener_id))

    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def _remove_listener(self, listener_id: int) -> None:
        with self._lock:
            self._listeners.pop(listener_id, None)

    def _notify(self, changed: str) -> None:
        changed = "/".join(_split(changed))
        with self._lock:
            targets = [
                (path, listener)
                for path, listener in self._listeners.values()
                if _related(path, changed)
            ]
            payloads = [copy.deepcopy(self._lookup(path.split("/"))) for path, _ in targets]

        # Listeners may write back into the store, so they run unlocked.
        for (path, listener), payload in zip(targets, payloads):
            listener(payload)

    def _lookup(self, parts: List[str]) -> Any:
        node: Any = self._root
        for part in parts:
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        return node

    def _ensure_parent(self, parts: List[str]) -> Dict[str, Any]:
        node = self._root
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        return node

    def _delete(self, parts: List[str]) -> None:
        parent = self._lookup(parts[:-1]) if len(parts) > 1 else self._root
        if isinstance(parent, dict):
            parent.pop(parts[-1], None)

    def _persist(self) -> None:
        if not self.persistence_path:
            return
        self.persistence_path.write_text(json.dumps(self._root, indent=2, sort_keys=True))

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        try:
            raw = self.persistence_path.read_text() or "{}"
            data = json.loads(raw)
        except (OSError, json.JSONDecodeError):
            logger.warning(
                "Ignoring unreadable store snapshot",
                extra={"path": str(self.persistence_path)},
            )
            data = {}

        if isinstance(data, dict):
            self._root = data


@lru_cache
def build_default_store(path: Optional[str] = None) -> RealtimeStore:
    settings = get_settings()
    store_path = settings.store_persistence_path if path is None else path
    persistence = Path(store_path) if store_path else None
    return RealtimeStore(persistence_path=persistence)

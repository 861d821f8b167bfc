"""Explicit state container with subscribe/update and opt-in JSON persistence."""
from __future__ import annotations

import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, Dict, Generic, Iterable, List, Optional, TypeVar

logger = logging.getLogger(__name__)

S = TypeVar("S")
Listener = Callable[[Any], None]


class JsonPersistence:
    """Serialize a named subset of state fields to a JSON file."""

    def __init__(self, path: Path, fields: Iterable[str]) -> None:
        self.path = path
        self.fields = frozenset(fields)

    def save(self, payload: Dict[str, Any]) -> None:
        subset = {key: value for key, value in payload.items() if key in self.fields}
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(subset, ensure_ascii=False), encoding="utf-8")

    def load(self) -> Dict[str, Any]:
        """Return the stored subset, or an empty dict if nothing usable is on disk."""

        if not self.path.exists():
            return {}
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable state file %s: %s", self.path, exc)
            return {}
        if not isinstance(payload, dict):
            logger.warning("Ignoring malformed state file %s", self.path)
            return {}
        return {key: value for key, value in payload.items() if key in self.fields}


class Store(Generic[S]):
    """Holds one immutable state dataclass and notifies listeners on change.

    ``encode`` turns the state into a JSON-ready dict and ``decode`` merges a
    stored dict back into a state; both are only needed with ``persistence``.
    """

    def __init__(
        self,
        initial: S,
        persistence: Optional[JsonPersistence] = None,
        encode: Optional[Callable[[S], Dict[str, Any]]] = None,
        decode: Optional[Callable[[S, Dict[str, Any]], S]] = None,
    ) -> None:
        if persistence and not (encode and decode):
            raise ValueError("encode and decode are required when persistence is set")
        self._state = initial
        self._listeners: List[Listener] = []
        self.persistence = persistence
        self._encode = encode
        self._decode = decode

    @property
    def state(self) -> S:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; the returned callable removes it again."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def update(self, **changes: Any) -> S:
        """Replace the state with ``changes`` applied and notify listeners."""

        self._state = replace(self._state, **changes)
        if self.persistence and self.persistence.fields.intersection(changes):
            self._save()
        self._notify()
        return self._state

    def hydrate(self) -> S:
        """Merge persisted fields into the current state, without notifying."""

        if not self.persistence:
            return self._state
        payload = self.persistence.load()
        if payload:
            try:
                self._state = self._decode(self._state, payload)
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Discarding persisted state from %s: %s", self.persistence.path, exc)
            else:
                logger.debug("Hydrated %s from %s", sorted(payload), self.persistence.path)
        return self._state

    def _save(self) -> None:
        try:
            self.persistence.save(self._encode(self._state))
        except OSError as exc:
            logger.warning("Could not persist state to %s: %s", self.persistence.path, exc)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                logger.exception("State listener %r failed", listener)

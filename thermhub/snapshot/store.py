"""Snapshot store: atomic publish, lock-free reads of the current view."""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from threading import Lock

from thermhub.models.snapshot import Snapshot, SnapshotField, with_field

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Published:
    snapshot: Snapshot
    rendered: bytes


class SnapshotStore:
    """Holds the published Snapshot and its pre-rendered JSON.

    Readers take the current reference without locking. Writers build a
    brand-new value from the current one under a lock and swap the
    reference, so a reader sees either the old or the new composite in
    full.
    """

    def __init__(self, initial: Snapshot | None = None) -> None:
        snapshot = initial or Snapshot()
        self._published = _Published(snapshot, snapshot.render())
        self._lock = Lock()
        self._version = 0

    @property
    def version(self) -> int:
        return self._version

    def current(self) -> Snapshot:
        return self._published.snapshot

    def serialized(self) -> bytes:
        return self._published.rendered

    def read(self) -> tuple[Snapshot, bytes]:
        """Snapshot and its rendering from the same publish."""
        published = self._published
        return published.snapshot, published.rendered

    def publish_many(self, updates: Mapping[SnapshotField, Iterable]) -> Snapshot:
        """Replace several fields in one swap, copying the rest forward."""
        with self._lock:
            snapshot = self._published.snapshot
            for field, value in updates.items():
                snapshot = with_field(snapshot, field, value)
            self._published = _Published(snapshot, snapshot.render())
            self._version += 1
        logger.debug(
            "Published snapshot v%d (%s)",
            self._version, ", ".join(str(f) for f in updates) or "no fields",
        )
        return snapshot

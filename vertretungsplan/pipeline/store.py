"""In-memory holder of the current plan snapshot."""

import threading

from vertretungsplan.models.schemas import PlanSnapshot


class SnapshotStore:
    """Owns the single published PlanSnapshot.

    Snapshots are frozen models, so publishing is a reference swap and
    readers always get one complete snapshot.
    """

    def __init__(self, initial: PlanSnapshot | None = None) -> None:
        self._snapshot = initial or PlanSnapshot()
        self._version = 0
        self._lock = threading.Lock()

    def read(self) -> PlanSnapshot:
        return self._snapshot

    def publish(self, snapshot: PlanSnapshot) -> None:
        with self._lock:
            self._snapshot = snapshot
            self._version += 1

    @property
    def version(self) -> int:
        """Number of snapshots published so far."""
        return self._version

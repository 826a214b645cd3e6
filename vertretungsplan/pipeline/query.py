"""Read access to the published plan."""

from vertretungsplan.errors import PlanUnavailableError
from vertretungsplan.models.schemas import (
    ClassView,
    DayFilter,
    DaySnapshot,
    DayView,
    PlanSnapshot,
    PlanView,
)
from vertretungsplan.parsing.normalizer import normalize_class_key
from vertretungsplan.pipeline.store import SnapshotStore

_DAY_MESSAGES = {
    DayFilter.TODAY: "Error fetching today's substitute plans",
    DayFilter.TOMORROW: "Error fetching tomorrow's substitute plans",
}
_PLAN_MESSAGE = "Error fetching substitute plans"


class QueryService:
    """Answers plan queries from a SnapshotStore.

    Each call reads the store once, so a refresh finishing mid-request never
    mixes two snapshots. While the store carries an error, queries raise
    PlanUnavailableError instead of returning stale data.
    """

    def __init__(self, store: SnapshotStore) -> None:
        self._store = store

    def _current(self, message: str) -> PlanSnapshot:
        snapshot = self._store.read()
        if snapshot.last_error is not None:
            raise PlanUnavailableError(snapshot.last_error, message)
        return snapshot

    def get_all(self) -> PlanView:
        snapshot = self._current(_PLAN_MESSAGE)
        return PlanView(
            today=snapshot.today,
            tomorrow=snapshot.tomorrow,
            last_updated=snapshot.last_updated,
        )

    def get_day(self, day: DayFilter) -> DayView:
        """Return one day of the plan.

        Raises:
            ValueError: If ``day`` is ``both``.
            PlanUnavailableError: If the last refresh failed.
        """
        if day not in _DAY_MESSAGES:
            raise ValueError(f"Expected today or tomorrow, got {day.value}")
        snapshot = self._current(_DAY_MESSAGES[day])
        return DayView(day=getattr(snapshot, day.value), last_updated=snapshot.last_updated)

    def get_by_class(
        self,
        class_label: str,
        day_filter: DayFilter = DayFilter.BOTH,
    ) -> ClassView:
        """Return the entries of one class.

        Only the requested days appear in the view. Records are matched on
        their normalized class key, so ``"6ABCD"`` finds ``"6abcd"``.
        """
        snapshot = self._current(_PLAN_MESSAGE)
        wanted = normalize_class_key(class_label)

        days: dict[str, DaySnapshot | None] = {}
        if day_filter is not DayFilter.TOMORROW:
            days["today"] = _filter_day(snapshot.today, wanted)
        if day_filter is not DayFilter.TODAY:
            days["tomorrow"] = _filter_day(snapshot.tomorrow, wanted)

        return ClassView(
            days=days,
            target_class=class_label,
            last_updated=snapshot.last_updated,
        )


def _filter_day(day: DaySnapshot | None, class_key: str) -> DaySnapshot | None:
    if day is None:
        return None
    kept = tuple(r for r in day.records if normalize_class_key(r.class_key) == class_key)
    return day.model_copy(update={"records": kept})

"""Search cooldown tracking per wanted item."""

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone

from release_decision.models import (
    CooldownPhase,
    CooldownState,
    ItemStatus,
    ItemStatusInfo,
)

logger = logging.getLogger(__name__)

RECENT_AIR_WINDOW = timedelta(days=30)


@dataclass(frozen=True)
class CooldownRule:
    """How long to wait before the next search for a status.

    Date-based rules count from the item's air/release date and fall back to
    another status when that date is unknown or already past.
    """

    delay: timedelta
    from_reference_date: bool = False
    fallback: ItemStatus | None = None


COOLDOWN_RULES: dict[ItemStatus, CooldownRule] = {
    ItemStatus.AIRED_MISSING: CooldownRule(timedelta(days=7)),
    ItemStatus.UPCOMING: CooldownRule(
        timedelta(days=1), from_reference_date=True, fallback=ItemStatus.AIRED_MISSING
    ),
    ItemStatus.CONTINUING_RECENT: CooldownRule(timedelta(days=3)),
    ItemStatus.ENDED_OLD: CooldownRule(timedelta(days=14)),
    ItemStatus.MOVIE_RELEASED: CooldownRule(timedelta(days=7)),
    ItemStatus.MOVIE_PRE_RELEASE: CooldownRule(
        timedelta(days=1),
        from_reference_date=True,
        fallback=ItemStatus.MOVIE_RELEASED,
    ),
    ItemStatus.ALBUM_RELEASED: CooldownRule(timedelta(days=7)),
    ItemStatus.ANIME_SIMULCAST: CooldownRule(timedelta(days=1)),
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def compute_next_allowed(info: ItemStatusInfo, now: datetime) -> datetime:
    """Compute when the next automatic search is allowed.

    Args:
        info: Item status and its air/release date, if known
        now: Time of the search the cooldown starts from

    Returns:
        Earliest time of the next automatic search
    """
    rule = COOLDOWN_RULES[info.status]
    if rule.from_reference_date:
        if info.reference_date is not None and info.reference_date > now:
            return info.reference_date + rule.delay
        if rule.fallback is not None:
            rule = COOLDOWN_RULES[rule.fallback]
    return now + rule.delay


def classify_episode(
    air_date: datetime | None,
    now: datetime,
    series_ended: bool = False,
    simulcast: bool = False,
) -> ItemStatusInfo:
    """Derive the cooldown status of a missing episode."""
    if simulcast:
        return ItemStatusInfo(ItemStatus.ANIME_SIMULCAST, air_date)
    if air_date is None or air_date > now:
        return ItemStatusInfo(ItemStatus.UPCOMING, air_date)
    if series_ended:
        return ItemStatusInfo(ItemStatus.ENDED_OLD, air_date)
    if now - air_date < RECENT_AIR_WINDOW:
        return ItemStatusInfo(ItemStatus.CONTINUING_RECENT, air_date)
    return ItemStatusInfo(ItemStatus.AIRED_MISSING, air_date)


@dataclass
class _ItemLock:
    lock: threading.RLock = field(default_factory=threading.RLock)
    users: int = 0


class SearchCooldownTracker:
    """Throttles automatic searches per wanted item.

    Each item has its own lock, so checking and updating one item's state is
    atomic while unrelated items never wait on each other. The same lock is
    available through ``item_lock`` for callers that must serialize grabs
    per item. A lock is dropped once nobody holds or waits on it and the
    item has no state, so only searched items keep one.
    """

    def __init__(
        self,
        status_lookup: Callable[[str], ItemStatusInfo],
        clock: Callable[[], datetime] = utc_now,
    ):
        self.status_lookup = status_lookup
        self.clock = clock
        self._states: dict[str, CooldownState] = {}
        self._locks: dict[str, _ItemLock] = {}
        self._registry_lock = threading.Lock()

    @contextmanager
    def _locked(self, item_id: str) -> Iterator[None]:
        with self._registry_lock:
            entry = self._locks.get(item_id)
            if entry is None:
                entry = self._locks[item_id] = _ItemLock()
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._registry_lock:
                entry.users -= 1
                if entry.users == 0 and item_id not in self._states:
                    del self._locks[item_id]

    @contextmanager
    def item_lock(self, item_id: str) -> Iterator[None]:
        """Hold the item's lock, e.g. while a grab for it is in flight."""
        with self._locked(item_id):
            yield

    def state(self, item_id: str) -> CooldownState | None:
        """Return a copy of the item's state, None before its first search."""
        with self._locked(item_id):
            state = self._states.get(item_id)
            return replace(state) if state is not None else None

    def phase(self, item_id: str) -> CooldownPhase:
        with self._locked(item_id):
            state = self._states.get(item_id)
            if state is None:
                return CooldownPhase.IDLE
            if self.clock() >= state.next_allowed_at:
                return CooldownPhase.READY
            return CooldownPhase.COOLING

    def check_and_maybe_search(self, item_id: str, forced: bool = False) -> bool:
        """Decide whether a search may run now and record it if so.

        The read-decide-write sequence runs under the item's lock, so of two
        concurrent callers on a ready item exactly one is allowed. A forced
        search is always allowed and still restarts the cooldown.

        Args:
            item_id: Wanted item identifier
            forced: Manual search that bypasses the cooldown

        Returns:
            True if the caller may search now
        """
        with self._locked(item_id):
            now = self.clock()
            state = self._states.get(item_id)
            if state is not None and not forced and now < state.next_allowed_at:
                logger.debug(
                    f"Search for {item_id} cooling until "
                    f"{state.next_allowed_at.isoformat()}"
                )
                return False

            info = self.status_lookup(item_id)
            next_allowed = compute_next_allowed(info, now)
            if state is None:
                self._states[item_id] = CooldownState(
                    item_id=item_id,
                    last_search_at=now,
                    next_allowed_at=next_allowed,
                    status_at_last_computation=info.status,
                )
            else:
                state.last_search_at = now
                state.next_allowed_at = next_allowed
                state.status_at_last_computation = info.status

            logger.debug(
                f"Search for {item_id} allowed{' (forced)' if forced else ''}; "
                f"next at {next_allowed.isoformat()} ({info.status.value})"
            )
            return True

    def refresh_status(
        self, item_id: str, info: ItemStatusInfo | None = None
    ) -> CooldownState | None:
        """Recompute an item's cooldown after a status transition.

        Relative rules are measured from the last search, so an episode that
        just aired gets the shorter wait of its new status right away.

        Args:
            item_id: Wanted item identifier
            info: New status; looked up when omitted

        Returns:
            Updated state copy, or None if the item was never searched
        """
        with self._locked(item_id):
            state = self._states.get(item_id)
            if state is None:
                return None
            info = info or self.status_lookup(item_id)
            state.next_allowed_at = compute_next_allowed(info, state.last_search_at)
            if info.status is not state.status_at_last_computation:
                logger.debug(
                    f"Status of {item_id} changed "
                    f"{state.status_at_last_computation.value} -> {info.status.value}"
                )
            state.status_at_last_computation = info.status
            return replace(state)

    def reset(self, item_id: str) -> None:
        """Forget an item's state; its next check is allowed immediately."""
        with self._locked(item_id):
            self._states.pop(item_id, None)

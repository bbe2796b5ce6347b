from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, NoReturn, Optional, Protocol, Sequence

from currency_engine.currencies import CurrencyCode
from currency_engine.rate_catalog import ExchangeRate, RateType

logger = logging.getLogger(__name__)


class PersistenceFailure(RuntimeError):
    """Raised when the favorites store rejects a change; local state is rolled back."""


@dataclass(frozen=True)
class FavoriteMark:
    rate_id: str
    currency: str
    rate_type: RateType
    order: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "currency", CurrencyCode.parse(self.currency).code)
        object.__setattr__(self, "rate_type", RateType.parse(self.rate_type))


class FavoritesStore(Protocol):
    def list_favorites(self, user_id: str) -> list[FavoriteMark]: ...

    def reorder(self, user_id: str, ordered_ids: Sequence[str]) -> bool: ...

    def toggle_favorite(self, user_id: str, rate_id: str) -> bool: ...


def sort_marks(marks: Iterable[FavoriteMark]) -> list[FavoriteMark]:
    return sorted(marks, key=lambda mark: mark.order)


def reorder_marks(marks: Iterable[FavoriteMark], ordered_ids: Sequence[str]) -> list[FavoriteMark]:
    """Permutation of ``marks`` following ``ordered_ids``.

    Unknown ids are ignored. Marks missing from ``ordered_ids`` keep their
    relative order after the listed ones.
    """
    current = sort_marks(marks)
    by_id = {mark.rate_id: mark for mark in current}
    listed: list[str] = []
    for rate_id in ordered_ids:
        if rate_id in by_id and rate_id not in listed:
            listed.append(rate_id)
    rest = [mark.rate_id for mark in current if mark.rate_id not in listed]
    return [
        replace(by_id[rate_id], order=index)
        for index, rate_id in enumerate(listed + rest)
    ]


def toggle_mark(marks: Iterable[FavoriteMark], rate: ExchangeRate) -> list[FavoriteMark]:
    """Remove the mark for ``rate`` if present, otherwise append it last."""
    if rate.id is None:
        raise ValueError("Only stored exchange rates can be favorited.")
    current = sort_marks(marks)
    if any(mark.rate_id == rate.id for mark in current):
        return [mark for mark in current if mark.rate_id != rate.id]
    next_order = max((mark.order for mark in current), default=-1) + 1
    current.append(FavoriteMark(rate.id, rate.currency, rate.rate_type, next_order))
    return current


class SyncState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class FavoritesView:
    """Local, optimistically updated view over a user's favorite rates.

    A change is applied locally at once (``PENDING``), then either confirmed
    by the store (``COMMITTED``) or reverted to the snapshot taken before the
    change (``ROLLED_BACK``).
    """

    def __init__(self, marks: Iterable[FavoriteMark] = ()) -> None:
        self.marks: list[FavoriteMark] = sort_marks(marks)
        self.state = SyncState.IDLE
        self._snapshot: Optional[list[FavoriteMark]] = None

    @classmethod
    def load(cls, store: FavoritesStore, user_id: str) -> "FavoritesView":
        return cls(store.list_favorites(user_id))

    @property
    def snapshot(self) -> Optional[list[FavoriteMark]]:
        return None if self._snapshot is None else list(self._snapshot)

    def begin(self, marks: list[FavoriteMark]) -> None:
        if self.state is SyncState.PENDING:
            raise RuntimeError("A favorites change is already pending.")
        self._snapshot = list(self.marks)
        self.marks = marks
        self.state = SyncState.PENDING

    def begin_reorder(self, ordered_ids: Sequence[str]) -> None:
        self.begin(reorder_marks(self.marks, ordered_ids))

    def begin_toggle(self, rate: ExchangeRate) -> None:
        self.begin(toggle_mark(self.marks, rate))

    def commit(self) -> None:
        self._require_pending()
        self._snapshot = None
        self.state = SyncState.COMMITTED

    def rollback(self) -> None:
        self._require_pending()
        self.marks = self._snapshot or []
        self._snapshot = None
        self.state = SyncState.ROLLED_BACK

    def reorder(self, store: FavoritesStore, user_id: str, ordered_ids: Sequence[str]) -> None:
        self.begin_reorder(ordered_ids)
        try:
            succeeded = store.reorder(user_id, [mark.rate_id for mark in self.marks])
        except Exception as exc:
            self._fail("reorder", exc)
        self._settle(succeeded, "reorder")

    def toggle(self, store: FavoritesStore, user_id: str, rate: ExchangeRate) -> None:
        self.begin_toggle(rate)
        try:
            succeeded = store.toggle_favorite(user_id, rate.id)
        except Exception as exc:
            self._fail("toggle", exc)
        self._settle(succeeded, "toggle")

    def favorite_types(self, currency: str) -> tuple[RateType, ...]:
        code = CurrencyCode.parse(currency).code
        return tuple(mark.rate_type for mark in self.marks if mark.currency == code)

    def favorite_currencies(self) -> list[str]:
        seen: list[str] = []
        for mark in self.marks:
            if mark.currency not in seen:
                seen.append(mark.currency)
        return seen

    def is_favorite(self, rate_id: str) -> bool:
        return any(mark.rate_id == rate_id for mark in self.marks)

    def _settle(self, succeeded: bool, action: str) -> None:
        if succeeded:
            self.commit()
            return
        self._fail(action)

    def _fail(self, action: str, cause: Optional[BaseException] = None) -> NoReturn:
        self.rollback()
        logger.warning("Favorites %s rejected by store; local order restored", action)
        raise PersistenceFailure(f"Could not {action} favorites.") from cause

    def _require_pending(self) -> None:
        if self.state is not SyncState.PENDING:
            raise RuntimeError("No favorites change is pending.")

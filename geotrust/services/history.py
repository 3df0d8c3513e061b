from collections import deque
from typing import Iterable, Iterator, Optional

from geotrust.schemas.location import LocationFix

MAX_HISTORY = 10


class LocationHistory:
    """Bounded FIFO of the most recent fixes for one hunting session.

    Not safe for concurrent mutation; keep one instance per session.
    """

    def __init__(self, fixes: Iterable[LocationFix] = (), maxlen: int = MAX_HISTORY):
        self._fixes: deque[LocationFix] = deque(fixes, maxlen=maxlen)

    @property
    def maxlen(self) -> int:
        return self._fixes.maxlen or MAX_HISTORY

    def append(self, fix: LocationFix) -> None:
        self._fixes.append(fix)

    def clear(self) -> None:
        self._fixes.clear()

    def latest(self) -> Optional[LocationFix]:
        return self._fixes[-1] if self._fixes else None

    def snapshot(self) -> list[LocationFix]:
        return list(self._fixes)

    def __len__(self) -> int:
        return len(self._fixes)

    def __iter__(self) -> Iterator[LocationFix]:
        return iter(self._fixes)

    def __getitem__(self, index: int) -> LocationFix:
        return self._fixes[index]


def append_to_history(history: LocationHistory, fix: LocationFix) -> LocationHistory:
    history.append(fix)
    return history

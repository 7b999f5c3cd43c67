"""Queue assignment rules.

Pure functions shared by every repository implementation: which counter a new
customer goes to, which token they get, and how positions are recomputed when
someone leaves or is called.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

from ..core.constants import ALMOST_TURN_POSITION, MINUTES_PER_POSITION
from ..core.enums import EntryStatus
from ..core.exceptions import ValidationError
from ..counters.model import Counter
from .model import QueueEntry


def pick_shortest_counter(loads: Iterable[Tuple[Counter, int]]) -> Counter:
    """Counter with the fewest waiting customers; ties go to the lowest counter number."""

    candidates = [(count, counter.counter_number, counter) for counter, count in loads if counter.is_active]
    if not candidates:
        raise ValidationError("No active counters available")
    candidates.sort(key=lambda item: (item[0], item[1]))
    return candidates[0][2]


def next_token_number(last_token: Optional[int]) -> int:
    return int(last_token or 0) + 1


def next_position(waiting_count: int) -> int:
    return max(int(waiting_count), 0) + 1


def estimate_wait_minutes(position: int) -> int:
    return max(int(position), 0) * MINUTES_PER_POSITION


def renumber_positions(entries: Sequence[QueueEntry]) -> List[Tuple[int, int]]:
    """Contiguous 1..n positions for a counter's waiting entries.

    Returns (entry_id, new_position) for every waiting entry, ordered by new
    position. Existing order is kept; the token number breaks ties.
    """

    waiting = [e for e in entries if e.status == EntryStatus.WAITING]
    waiting.sort(key=lambda e: (e.position_in_queue, e.token_number))
    return [(e.entry_id, index) for index, e in enumerate(waiting, start=1)]


def is_almost_turn(position: int, status: EntryStatus) -> bool:
    return status == EntryStatus.WAITING and 0 < position <= ALMOST_TURN_POSITION

"""Shift cycle classification.

Two independent calendar models live here:

* the per-pattern model (:class:`~handover.core.schema.ShiftPattern`): a
  repeating N-day cycle anchored at a reference date, where each pattern works
  ``SHIFT_BLOCK_DAYS`` days starting at its day offset and the same number of
  nights starting at its night offset;
* the fixed 8-day on/off model behind the shift-block filter: four working
  days followed by four days off, anchored at a user-picked start date.

Every function is pure.  Instants are interpreted on their own wall clock;
use :func:`local_time` first when holding timezone-aware values.
"""
from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Iterable, Sequence, TypeVar
from zoneinfo import ZoneInfo

from handover.core.schema import JobRecord, ShiftPattern
from handover.domain import ShiftBlock, ShiftClassification, ShiftWindow
from handover.domain.shifts import BlockShift, Phase

DAY_START_HOUR = 7
NIGHT_START_HOUR = 19
SHIFT_BLOCK_DAYS = 4
BLOCK_CYCLE_DAYS = 8

_ONE_DAY = timedelta(days=1)

JobT = TypeVar("JobT", bound=JobRecord)


def local_time(instant: datetime, tz: str | None = None) -> datetime:
    """Return the naive wall-clock time of ``instant`` in ``tz`` (system zone if None)."""

    if instant.tzinfo is None:
        return instant
    zone = ZoneInfo(tz) if tz else None
    return instant.astimezone(zone).replace(tzinfo=None)


def _as_datetime(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time())


def _as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def cycle_position(instant: date | datetime, reference: date | datetime, cycle_length: int) -> int:
    """Whole days from ``reference`` to ``instant``, wrapped into ``[0, cycle_length)``."""

    if cycle_length < 1:
        raise ValueError("cycle_length must be at least 1")
    start = _as_datetime(reference)
    current = _as_datetime(instant)
    if (start.tzinfo is None) != (current.tzinfo is None):
        start = start.replace(tzinfo=None)
        current = current.replace(tzinfo=None)
    days = (current - start) // _ONE_DAY
    return ((days % cycle_length) + cycle_length) % cycle_length


def is_day_phase(instant: datetime) -> bool:
    return DAY_START_HOUR <= instant.hour < NIGHT_START_HOUR


def phase_of(instant: datetime) -> Phase:
    return "day" if is_day_phase(instant) else "night"


def shift_day(instant: datetime) -> date:
    """Calendar day a shift belongs to; small hours roll back to the previous night."""

    if instant.hour < DAY_START_HOUR:
        return instant.date() - _ONE_DAY
    return instant.date()


def _works(cycle_day: int, start: int, cycle_length: int) -> bool:
    span = min(SHIFT_BLOCK_DAYS, cycle_length)
    return (cycle_day - start) % cycle_length < span


def classify(instant: datetime, pattern: ShiftPattern) -> ShiftClassification:
    day_key = shift_day(instant)
    phase = phase_of(instant)
    cycle_day = cycle_position(day_key, pattern.reference_date, pattern.cycle_length)
    start = pattern.day_start_cycle_day if phase == "day" else pattern.night_start_cycle_day
    return ShiftClassification(
        cycle_day=cycle_day,
        phase=phase,
        day_key=day_key,
        on_duty=_works(cycle_day, start, pattern.cycle_length),
    )


def pattern_on_duty(instant: datetime, patterns: Iterable[ShiftPattern]) -> ShiftPattern | None:
    for pattern in patterns:
        if classify(instant, pattern).on_duty:
            return pattern
    return None


# ----------------------------------------------------------------------
# fixed 8-day on/off blocks
# ----------------------------------------------------------------------
def block_for_date(day: date | datetime, pattern_start: date | datetime) -> ShiftBlock:
    current = _as_date(day)
    position = cycle_position(current, _as_date(pattern_start), BLOCK_CYCLE_DAYS)
    half = BLOCK_CYCLE_DAYS // 2
    is_active = position < half
    offset = position if is_active else position - half
    block_start = current - timedelta(days=offset)
    return ShiftBlock(
        block_start=block_start,
        block_end=block_start + timedelta(days=half - 1),
        is_active=is_active,
    )


def generate_shift_blocks(
    pattern_start: date,
    today: date,
    *,
    past_days: int = 90,
    future_days: int = 30,
) -> list[ShiftBlock]:
    """Active blocks overlapping ``[today - past_days, today + future_days]``, oldest first."""

    range_start = today - timedelta(days=past_days)
    range_end = today + timedelta(days=future_days)
    step = timedelta(days=BLOCK_CYCLE_DAYS // 2)

    blocks: list[ShiftBlock] = []
    cursor = block_for_date(range_start, pattern_start).block_start
    while cursor <= range_end:
        block = block_for_date(cursor, pattern_start)
        if block.is_active:
            blocks.append(block)
        cursor += step
    return blocks


def block_window(block: ShiftBlock, shift: BlockShift) -> ShiftWindow:
    return ShiftWindow(
        start=datetime.combine(block.block_start, time()),
        end=datetime.combine(block.block_end + _ONE_DAY, time()),
        shift=shift,
    )


def filter_jobs_by_block(
    jobs: Sequence[JobT],
    block: ShiftBlock,
    shift: BlockShift,
    *,
    tz: str | None = None,
) -> list[JobT]:
    window = block_window(block, shift)
    want_days = shift == "days"
    selected: list[JobT] = []
    for job in jobs:
        instant = local_time(job.date, tz)
        if window.start <= instant < window.end and is_day_phase(instant) == want_days:
            selected.append(job)
    return selected

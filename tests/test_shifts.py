from __future__ import annotations

import sys
from datetime import date, datetime, timedelta
from pathlib import Path

import pytest
from pydantic import ValidationError

sys.path.append(str(Path(__file__).resolve().parents[1]))

from handover.core.schema import JobRecord, ShiftPattern
from handover.core.shifts import (
    block_for_date,
    block_window,
    classify,
    cycle_position,
    filter_jobs_by_block,
    generate_shift_blocks,
    is_day_phase,
    local_time,
    pattern_on_duty,
    shift_day,
)

D = date(2025, 6, 22)


def _pattern(**overrides) -> ShiftPattern:
    values = {
        "id": "1",
        "name": "Shift 1",
        "referenceDate": D.isoformat(),
        "cycleLength": 16,
        "dayStartCycleDay": 0,
        "nightStartCycleDay": 8,
    }
    values.update(overrides)
    return ShiftPattern.model_validate(values)


def _at(day: date, hour: int, minute: int = 0) -> datetime:
    return datetime(day.year, day.month, day.day, hour, minute)


def _default_patterns() -> list[ShiftPattern]:
    return [
        _pattern(id="1", name="Shift 1", dayStartCycleDay=0, nightStartCycleDay=8),
        _pattern(id="2", name="Shift 2", dayStartCycleDay=4, nightStartCycleDay=12),
        _pattern(id="3", name="Shift 3", dayStartCycleDay=8, nightStartCycleDay=0),
        _pattern(id="4", name="Shift 4", dayStartCycleDay=12, nightStartCycleDay=4),
    ]


def test_reference_day_morning_is_cycle_day_zero_day_phase():
    result = classify(_at(D, 10), _pattern())
    assert result.cycle_day == 0
    assert result.phase == "day"
    assert result.day_key == D
    assert result.on_duty is True


def test_last_cycle_day_late_evening_is_night_phase():
    result = classify(_at(D + timedelta(days=15), 23), _pattern())
    assert result.cycle_day == 15
    assert result.phase == "night"


def test_day_before_reference_wraps_to_tail_of_cycle():
    result = classify(_at(D - timedelta(days=1), 10), _pattern())
    assert result.cycle_day == 15


def test_small_hours_belong_to_previous_night():
    instant = _at(D + timedelta(days=3), 2)
    result = classify(instant, _pattern())
    assert result.day_key == instant.date() - timedelta(days=1)
    assert result.phase == "night"
    assert result.cycle_day == 2


@pytest.mark.parametrize(
    ("hour", "expected"),
    [(6, False), (7, True), (12, True), (18, True), (19, False), (23, False), (0, False)],
)
def test_day_phase_boundaries(hour, expected):
    assert is_day_phase(_at(D, hour)) is expected


def test_shift_day_keeps_calendar_day_after_seven():
    assert shift_day(_at(D, 7)) == D
    assert shift_day(_at(D, 6, 59)) == D - timedelta(days=1)


def test_cycle_position_floors_partial_days_before_reference():
    assert cycle_position(datetime(2025, 6, 21, 23, 0), D, 16) == 15
    assert cycle_position(D - timedelta(days=17), D, 16) == 15
    assert cycle_position(D + timedelta(days=32), D, 16) == 0


def test_cycle_position_rejects_empty_cycle():
    with pytest.raises(ValueError):
        cycle_position(D, D, 0)


def test_classify_is_repeatable():
    instant = _at(D + timedelta(days=40), 20)
    pattern = _pattern()
    assert classify(instant, pattern) == classify(instant, pattern)


def test_exactly_one_default_pattern_on_duty_per_shift():
    patterns = _default_patterns()
    for offset in range(32):
        for hour in (10, 22):
            instant = _at(D + timedelta(days=offset), hour)
            on_duty = [p.id for p in patterns if classify(instant, p).on_duty]
            assert len(on_duty) == 1, (offset, hour, on_duty)


def test_pattern_on_duty_uses_rollover_day():
    patterns = _default_patterns()
    # 02:00 on cycle day 1 belongs to the night of cycle day 0, worked by shift 3
    assert pattern_on_duty(_at(D + timedelta(days=1), 2), patterns).id == "3"
    assert pattern_on_duty(_at(D + timedelta(days=4), 10), patterns).id == "2"


def test_pattern_offsets_must_fit_cycle():
    with pytest.raises(ValidationError):
        _pattern(cycleLength=8, nightStartCycleDay=8)


def test_block_for_date_active_window():
    block = block_for_date(D + timedelta(days=2), D)
    assert block.is_active is True
    assert block.block_start == D
    assert block.block_end == D + timedelta(days=3)


def test_block_for_date_off_window():
    block = block_for_date(D + timedelta(days=6), D)
    assert block.is_active is False
    assert block.block_start == D + timedelta(days=4)
    assert block.block_end == D + timedelta(days=7)


def test_block_for_date_before_pattern_start():
    block = block_for_date(D - timedelta(days=1), D)
    assert block.is_active is False
    assert block.block_start == D - timedelta(days=4)

    block = block_for_date(D - timedelta(days=5), D)
    assert block.is_active is True
    assert block.block_start == D - timedelta(days=8)


def test_generate_shift_blocks_returns_active_blocks_in_range():
    today = D + timedelta(days=100)
    blocks = generate_shift_blocks(D, today)
    assert blocks
    assert all(block.is_active for block in blocks)
    assert all((block.block_start - D).days % 8 == 0 for block in blocks)
    assert blocks[0].block_end >= today - timedelta(days=90)
    assert blocks[-1].block_start <= today + timedelta(days=30)
    starts = [block.block_start for block in blocks]
    assert starts == sorted(starts)


def test_block_filter_selects_matching_phase():
    block = block_for_date(D, D)
    jobs = [
        JobRecord(id="a", date=_at(D, 9), department="Process"),
        JobRecord(id="b", date=_at(D + timedelta(days=3), 21), department="Process"),
        JobRecord(id="c", date=_at(D + timedelta(days=4), 3), department="Process"),
        JobRecord(id="d", date=_at(D + timedelta(days=5), 9), department="Process"),
    ]
    assert [job.id for job in filter_jobs_by_block(jobs, block, "days")] == ["a"]
    assert [job.id for job in filter_jobs_by_block(jobs, block, "nights")] == ["b"]

    window = block_window(block, "days")
    assert window.end == datetime(2025, 6, 26)


def test_local_time_drops_zone_after_conversion():
    aware = datetime.fromisoformat("2025-06-22T05:30:00+00:00")
    assert local_time(aware, "Europe/London") == datetime(2025, 6, 22, 6, 30)
    naive = datetime(2025, 6, 22, 6, 30)
    assert local_time(naive, "Europe/London") is naive

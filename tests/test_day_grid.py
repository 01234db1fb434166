"""
Unit tests for the day_grid module.
"""

from datetime import date, datetime
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from day_grid import (block_at_offset, build_day_grid, build_slots, compute_utilization, place,
                      slot_at_offset, slot_start, unscheduled_items)
from models import SchedulableItem, WorkingHours

DAY = date(2025, 3, 10)
WORKING_HOURS = WorkingHours.from_strings("09:00", "17:00")


def _item(start, minutes=60, **fields):
    return SchedulableItem(id=fields.pop("id", "t"), title="Task", scheduled_start=start,
                           duration_minutes=minutes, **fields)


class TestSlots:
    """Tests for slot generation."""

    def test_default_range(self):
        """30-minute slots from 06:00 up to 23:00."""
        slots = build_slots(WORKING_HOURS)
        assert len(slots) == 34
        assert (slots[0].hour, slots[0].minute) == (6, 0)
        assert (slots[-1].hour, slots[-1].minute) == (22, 30)

    def test_working_flags(self):
        """Only slots inside working hours are flagged."""
        slots = {(s.hour, s.minute): s for s in build_slots(WORKING_HOURS)}
        assert not slots[(8, 30)].is_working_hour
        assert slots[(9, 0)].is_working_hour
        assert slots[(16, 30)].is_working_hour
        assert not slots[(17, 0)].is_working_hour
        assert slots[(9, 0)].top_px == 360


class TestPlace:
    """Tests for block placement."""

    def test_offsets(self):
        """Top offset follows the start time; height follows the duration minus the gap."""
        block = place(_item(datetime(2025, 3, 10, 9, 0), 60))
        assert block.top_px == 360
        assert block.height_px == 116

    def test_zero_duration_never_negative(self):
        """A zero-minute block has zero height, not a negative one."""
        assert place(_item(datetime(2025, 3, 10, 9, 0), 0)).height_px == 0


class TestBuildDayGrid:
    """Tests for the full day grid."""

    def test_blocks_for_the_day_only(self):
        """Only items scheduled on the day are placed, sorted by start."""
        tasks = [
            {"id": "late", "scheduledStart": "2025-03-10T14:00:00", "estimatedMinutes": 60},
            {"id": "early", "scheduledStart": "2025-03-10T09:00:00", "estimatedMinutes": 90},
            {"id": "other", "scheduledStart": "2025-03-11T09:00:00"},
        ]
        grid = build_day_grid(DAY, tasks, working_hours=WORKING_HOURS)
        assert [b.item.id for b in grid.blocks] == ["early", "late"]
        assert grid.utilization.scheduled_minutes == 150
        assert grid.height_px == 34 * 60

    def test_habits_are_placed(self):
        """Timed habits are placed and count toward utilization."""
        habit = {"id": "h", "title": "Walk", "scheduledTime": "07:30", "estimatedMinutes": 30}
        grid = build_day_grid(DAY, [], [habit], working_hours=WORKING_HOURS)
        assert [b.item.kind for b in grid.blocks] == ["habit"]
        assert grid.blocks[0].top_px == 180
        assert grid.utilization.scheduled_minutes == 30

    def test_unscheduled_sidebar(self):
        """Open tasks without a start appear, with or without a due date."""
        tasks = [
            {"id": "no-due"},
            {"id": "due", "dueDate": "2025-03-20"},
            {"id": "done", "status": "completed"},
            {"id": "placed", "scheduledStart": "2025-03-12T09:00:00"},
        ]
        grid = build_day_grid(DAY, tasks, working_hours=WORKING_HOURS)
        assert [i.id for i in grid.unscheduled] == ["no-due", "due"]
        assert [i.id for i in unscheduled_items(tasks)] == ["no-due", "due"]


class TestUtilization:
    """Tests for utilization flags."""

    def test_overbooked(self):
        """500 of 480 minutes is overbooked, near capacity, and 20 minutes short."""
        items = [_item(datetime(2025, 3, 10, 9), 200), _item(datetime(2025, 3, 10, 13), 300)]
        utilization = compute_utilization(items, WORKING_HOURS)
        assert utilization.is_overbooked
        assert utilization.is_near_capacity
        assert utilization.remaining_minutes == -20

    def test_near_capacity(self):
        """400 of 480 minutes is near capacity but not overbooked."""
        utilization = compute_utilization([_item(datetime(2025, 3, 10, 9), 400)], WORKING_HOURS)
        assert utilization.is_near_capacity
        assert not utilization.is_overbooked

    def test_no_working_minutes(self):
        """Zero working minutes gives 0%."""
        utilization = compute_utilization([_item(datetime(2025, 3, 10, 9))], WorkingHours(540, 540))
        assert utilization.utilization_percent == 0


class TestHitTesting:
    """Tests for pointer offsets."""

    def test_slot_at_offset(self):
        """Offsets map to the slot they fall in, None outside the grid."""
        slots = build_slots(WORKING_HOURS)
        assert slot_at_offset(0, slots) is slots[0]
        assert (slot_at_offset(365, slots).hour, slot_at_offset(365, slots).minute) == (9, 0)
        assert slot_at_offset(-1, slots) is None
        assert slot_at_offset(34 * 60, slots) is None
        assert slot_at_offset(None, slots) is None

    def test_block_at_offset(self):
        """The block under the offset is found; gaps between blocks are empty."""
        blocks = [place(_item(datetime(2025, 3, 10, 9), 60, id="a"))]
        assert block_at_offset(400, blocks).item.id == "a"
        assert block_at_offset(478, blocks) is None

    def test_slot_start(self):
        """A slot on a day becomes a naive local instant."""
        assert slot_start(DAY, 14, 30) == datetime(2025, 3, 10, 14, 30)

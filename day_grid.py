"""
Single-day time-block grid.

Working hours are split into fixed slots, scheduled tasks and habit
occurrences are positioned by their start time, and the scheduled minutes are
compared against the working minutes of the day.
"""

from config import (BLOCK_GAP_PX, GRID_END_HOUR, GRID_START_HOUR,
                    SLOT_HEIGHT_PX, SLOT_MINUTES)
from models import (DayGrid, PlacedBlock, Slot, Utilization, WorkingHours,
                    as_items, habit_occurrences)
from temporal import at_time, day_of, minutes_of_day


def build_slots(working_hours, grid_start_hour=GRID_START_HOUR, grid_end_hour=GRID_END_HOUR,
                slot_minutes=SLOT_MINUTES, slot_height_px=SLOT_HEIGHT_PX):
    slots = []
    for index, minute_of_day in enumerate(range(grid_start_hour * 60, grid_end_hour * 60, slot_minutes)):
        hour, minute = divmod(minute_of_day, 60)
        slots.append(Slot(
            hour=hour,
            minute=minute,
            is_working_hour=working_hours.contains(minute_of_day),
            top_px=index * slot_height_px,
        ))
    return slots


def place(item, grid_start_hour=GRID_START_HOUR, slot_minutes=SLOT_MINUTES,
          slot_height_px=SLOT_HEIGHT_PX, gap_px=BLOCK_GAP_PX):
    minutes_since_start = minutes_of_day(item.scheduled_start) - grid_start_hour * 60
    top = minutes_since_start / slot_minutes * slot_height_px
    height = item.duration_minutes / slot_minutes * slot_height_px - gap_px
    return PlacedBlock(item=item, top_px=top, height_px=max(0.0, height))


def scheduled_on(day, items):
    day = day_of(day)
    return [i for i in items if i.scheduled_start is not None and day_of(i.scheduled_start) == day]


def unscheduled_items(tasks):
    """Every open task without a scheduled start, whether or not it has a due date."""
    return [i for i in as_items(tasks) if not i.completed and i.scheduled_start is None]


def compute_utilization(items, working_hours):
    total = working_hours.total_minutes
    scheduled = sum(i.duration_minutes for i in items)
    percent = scheduled / total * 100 if total > 0 else 0.0
    return Utilization(total_working_minutes=total, scheduled_minutes=scheduled,
                       utilization_percent=percent)


def build_day_grid(day, tasks, habits=(), working_hours=None,
                   grid_start_hour=GRID_START_HOUR, grid_end_hour=GRID_END_HOUR,
                   slot_minutes=SLOT_MINUTES, slot_height_px=SLOT_HEIGHT_PX):
    working_hours = working_hours or WorkingHours.default()
    day = day_of(day)
    items = as_items(tasks)

    placed_items = scheduled_on(day, items) + habit_occurrences(habits, day)
    placed_items.sort(key=lambda i: i.scheduled_start)

    blocks = [place(i, grid_start_hour, slot_minutes, slot_height_px) for i in placed_items]

    return DayGrid(
        day=day,
        slots=build_slots(working_hours, grid_start_hour, grid_end_hour, slot_minutes, slot_height_px),
        blocks=blocks,
        utilization=compute_utilization(placed_items, working_hours),
        unscheduled=unscheduled_items(items),
        slot_height_px=slot_height_px,
    )


def slot_start(day, hour, minute):
    """The instant a slot begins on ``day``; drop targets and slot clicks both use it."""
    return at_time(day, hour, minute)


def slot_at_offset(y_px, slots, slot_height_px=SLOT_HEIGHT_PX):
    """The slot under a vertical pixel offset into the grid, or None outside it."""
    if y_px is None or y_px < 0:
        return None
    index = int(y_px // slot_height_px)
    if index >= len(slots):
        return None
    return slots[index]


def block_at_offset(y_px, blocks):
    """The last-drawn block covering ``y_px``, or None."""
    if y_px is None:
        return None
    for block in reversed(blocks):
        if block.top_px <= y_px <= block.top_px + block.height_px:
            return block
    return None

"""
Month calendar aggregation.

``build_month`` lays out the Sunday-first grid for a month and buckets tasks
and habit occurrences into one ``DayCell`` per date.
"""

from collections import defaultdict
from datetime import date

from models import DayCell, WorkingHours, as_items, habit_occurrences
from temporal import day_of, is_weekend, iter_days, month_bounds, month_grid_bounds, round_half_up


def available_minutes_on(day, working_hours):
    if is_weekend(day):
        return 0
    return working_hours.total_minutes


def capacity_percent(scheduled_minutes, available_minutes):
    """Rounded utilization percent, uncapped."""
    if available_minutes <= 0:
        return 0
    return round_half_up(scheduled_minutes / available_minutes * 100)


def bucket_by_day(items, attribute):
    buckets = defaultdict(list)
    for item in items:
        value = getattr(item, attribute)
        if value is not None:
            buckets[day_of(value)].append(item)
    return buckets


def build_day_cell(day, due, scheduled, working_hours, current_month=None, today=None):
    cell = DayCell(
        date=day,
        is_current_month=current_month is None or (day.year, day.month) == current_month,
        is_today=day == today,
        is_weekend=is_weekend(day),
        due=list(due),
        scheduled=list(scheduled),
    )

    for item in cell.scheduled:
        if item.completed:
            cell.completed_scheduled.append(item)

    for item in cell.due:
        if item.completed:
            continue
        if item.scheduled_start is None:
            cell.unscheduled_due.append(item)
            cell.needs_attention.append(item)
        elif day_of(item.scheduled_start) != day:
            cell.needs_attention.append(item)

    cell.scheduled_minutes = sum(item.duration_minutes for item in cell.scheduled)
    cell.available_minutes = available_minutes_on(day, working_hours)
    cell.capacity_percent = capacity_percent(cell.scheduled_minutes, cell.available_minutes)
    return cell


def build_month(month_anchor, tasks, habits=(), working_hours=None, today=None):
    """Return the DayCells for the whole-week grid around ``month_anchor``'s month."""
    working_hours = working_hours or WorkingHours.default()
    today = day_of(today) if today is not None else date.today()
    anchor = day_of(month_anchor)
    first, _ = month_bounds(anchor)
    grid_start, grid_end = month_grid_bounds(anchor)

    items = as_items(tasks)
    due_by_day = bucket_by_day(items, "due_date")
    scheduled_by_day = bucket_by_day(items, "scheduled_start")

    cells = []
    for day in iter_days(grid_start, grid_end):
        scheduled = scheduled_by_day.get(day, []) + habit_occurrences(habits, day)
        cells.append(build_day_cell(
            day,
            due_by_day.get(day, []),
            scheduled,
            working_hours,
            current_month=(first.year, first.month),
            today=today,
        ))
    return cells


def month_title(anchor):
    return day_of(anchor).strftime("%B %Y")


def weeks(cells):
    """Split a month grid into rows of seven cells."""
    return [cells[i:i + 7] for i in range(0, len(cells), 7)]

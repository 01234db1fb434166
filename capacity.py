"""
Capacity bands and multi-day summaries built on the per-day aggregation.
"""

from collections import namedtuple
from datetime import date, timedelta

from calendar_month import bucket_by_day, build_day_cell
from config import capacity_colors
from models import WorkingHours, as_items, habit_occurrences
from temporal import day_of, iter_days, round_half_up

RangeCapacity = namedtuple("RangeCapacity", [
    "start", "end", "days", "total_hours_scheduled", "total_hours_available",
    "average_utilization", "overbooked_days",
])

WeekSummary = namedtuple("WeekSummary", [
    "label", "week_start", "week_end", "hours_scheduled", "hours_available",
    "utilization", "status", "color", "days_overbooked",
])

ScheduleGap = namedtuple("ScheduleGap", ["date", "available_minutes"])

_LABELS = {
    'available': 'Available',
    'comfortable': 'Light',
    'busy': 'Busy',
    'full': 'Full',
    'overbooked': 'Overbooked',
}


def capacity_status(percent):
    if percent == 0:
        return 'available'
    if percent <= 70:
        return 'comfortable'
    if percent <= 90:
        return 'busy'
    if percent <= 100:
        return 'full'
    return 'overbooked'


def capacity_color(percent):
    return capacity_colors[capacity_status(percent)]


def capacity_label(percent):
    return f"{_LABELS[capacity_status(percent)]} ({round_half_up(percent)}%)"


def _round_hours(minutes):
    return round_half_up(minutes / 60 * 10) / 10


def day_capacity(day, items, working_hours=None):
    """Capacity cell for one day from the items already scheduled on it."""
    working_hours = working_hours or WorkingHours.default()
    return build_day_cell(day_of(day), (), items, working_hours)


def day_cells(start, end, tasks, habits=(), working_hours=None):
    working_hours = working_hours or WorkingHours.default()
    scheduled_by_day = bucket_by_day(as_items(tasks), "scheduled_start")
    return [
        build_day_cell(day, (), scheduled_by_day.get(day, []) + habit_occurrences(habits, day), working_hours)
        for day in iter_days(start, end)
    ]


def range_capacity(start, end, tasks, working_hours=None, habits=()):
    days = day_cells(start, end, tasks, habits, working_hours)
    scheduled = sum(d.scheduled_minutes for d in days)
    available = sum(d.available_minutes for d in days)
    average = scheduled / available * 100 if available > 0 else 0
    return RangeCapacity(
        start=day_of(start),
        end=day_of(end),
        days=days,
        total_hours_scheduled=_round_hours(scheduled),
        total_hours_available=_round_hours(available),
        average_utilization=round_half_up(average),
        overbooked_days=sum(1 for d in days if d.is_overbooked),
    )


def week_summary(week_start, tasks, working_hours=None, habits=()):
    week_start = day_of(week_start)
    week_end = week_start + timedelta(days=6)
    summary = range_capacity(week_start, week_end, tasks, working_hours, habits)
    scheduled = sum(d.scheduled_minutes for d in summary.days)
    available = sum(d.available_minutes for d in summary.days)
    utilization = scheduled / available * 100 if available > 0 else 0
    return WeekSummary(
        label=f"{week_start:%b} {week_start.day}",
        week_start=week_start,
        week_end=week_end,
        hours_scheduled=summary.total_hours_scheduled,
        hours_available=summary.total_hours_available,
        utilization=round_half_up(utilization),
        status=capacity_status(utilization),
        color=capacity_color(utilization),
        days_overbooked=summary.overbooked_days,
    )


def find_schedule_gaps(tasks, working_hours=None, today=None, days=14, min_free_minutes=30, habits=()):
    """Working days in the next ``days`` with more than ``min_free_minutes`` unbooked."""
    start = day_of(today) if today is not None else date.today()
    end = start + timedelta(days=days - 1)
    gaps = []
    for cell in day_cells(start, end, tasks, habits, working_hours):
        if cell.is_weekend:
            continue
        free = cell.available_minutes - cell.scheduled_minutes
        if free > min_free_minutes:
            gaps.append(ScheduleGap(cell.date, free))
    return gaps

"""
Gantt timeline: day columns, view windows, and mapping dated items onto columns.

A visible window is a run of consecutive ``DayColumn``s. ``map_to_columns``
turns an item's start/end into a half-open column span clipped to the window;
items that land entirely outside it get no span at all.
"""

from collections import namedtuple
from datetime import date, datetime, timedelta

from calendar_month import bucket_by_day
from config import (NAV_STEP_DAYS, NEAR_CAPACITY_PERCENT, TODAY_LEAD_DAYS, VIEW_MODE_DAYS,
                    default_project_color, goal_color, unassigned_task_color)
from models import (ColumnSpan, DayColumn, SchedulableItem, TimelineBar, TimelineItem,
                    WorkingHours, as_items, is_completed)
from temporal import count_work_days, day_of, is_weekend, normalize, round_half_up

CapacityStats = namedtuple("CapacityStats", ["overbooked", "near_capacity", "total_available_hours",
                                             "total_scheduled_hours", "work_days"])


def _today(today):
    return day_of(today) if today is not None else date.today()


def _midnight(day):
    return datetime(day.year, day.month, day.day)


# --- Columns and windows ---

def generate_day_columns(start, days, tasks=(), working_hours=None, today=None):
    working_hours = working_hours or WorkingHours.default()
    today = _today(today)
    start = day_of(start)
    due_by_day = bucket_by_day([i for i in as_items(tasks) if not i.completed], "due_date")

    columns = []
    for offset in range(days):
        day = start + timedelta(days=offset)
        due_minutes = sum(i.duration_minutes for i in due_by_day.get(day, []))
        weekend = is_weekend(day)
        columns.append(DayColumn(
            date=day,
            is_today=day == today,
            is_weekend=weekend,
            scheduled_hours=due_minutes / 60,
            available_hours=0.0 if weekend else working_hours.total_minutes / 60,
        ))
    return columns


def window_days(view_mode):
    return VIEW_MODE_DAYS.get(view_mode, VIEW_MODE_DAYS['month'])


def default_window_start(today=None):
    return _today(today) - timedelta(days=TODAY_LEAD_DAYS)


def navigate(start, view_mode, direction, today=None):
    """New window start after pressing prev, next or today."""
    if direction == 'today':
        return default_window_start(today)
    step = NAV_STEP_DAYS.get(view_mode, NAV_STEP_DAYS['month'])
    if direction == 'prev':
        step = -step
    elif direction != 'next':
        return day_of(start)
    return day_of(start) + timedelta(days=step)


def capacity_stats(columns):
    overbooked = near = 0
    for column in columns:
        if column.is_weekend:
            continue
        if column.scheduled_hours > column.available_hours:
            overbooked += 1
        elif column.scheduled_hours > column.available_hours * NEAR_CAPACITY_PERCENT / 100:
            near += 1
    return CapacityStats(
        overbooked=overbooked,
        near_capacity=near,
        total_available_hours=sum(c.available_hours for c in columns),
        total_scheduled_hours=sum(c.scheduled_hours for c in columns),
        work_days=count_work_days(columns[0].date, columns[-1].date) if columns else 0,
    )


# --- Column mapping ---

def map_to_columns(start, end, columns):
    """Half-open column span of [start, end] within ``columns``, or None when nothing is visible."""
    start, end = normalize(start), normalize(end)
    if start is None or end is None or not columns:
        return None
    start_day, end_day = day_of(start), day_of(end)

    # first column on/after the start; an item starting past the window gets no columns
    start_idx = next((i for i, c in enumerate(columns) if c.date >= start_day), len(columns))
    end_idx = next((i for i, c in enumerate(columns) if c.date > end_day), len(columns))

    if end_idx - start_idx <= 0:
        return None
    return ColumnSpan(start_idx, end_idx, len(columns))


def to_bar(item, columns):
    if item is None:
        return None
    span = map_to_columns(item.start, item.end, columns)
    if span is None:
        return None
    return TimelineBar(item=item, columns=span)


def milestone_marker_percent(deadline, columns):
    """Horizontal centre of the deadline's column as a percent, or None when off-screen."""
    deadline = normalize(deadline)
    if deadline is None or not columns:
        return None
    day = day_of(deadline)
    for index, column in enumerate(columns):
        if column.date == day:
            return (index + 0.5) / len(columns) * 100
    return None


# --- Timeline items ---

def project_item(project, tasks, milestones, today=None):
    """Bar extent for a project; None when neither it nor its work has any end date."""
    project_id = project.get("id")
    ends = [normalize(project.get("deadline"))]
    ends += [i.due_date for i in as_items(tasks) if i.project_id == project_id]
    ends += [normalize(m.get("deadline")) for m in milestones if m.get("projectId") == project_id]
    ends = [e for e in ends if e is not None]
    if not ends:
        return None

    start = (normalize(project.get("startDate")) or normalize(project.get("createdAt"))
             or _midnight(_today(today)))
    task_count = project.get("taskCount") or 0
    progress = 0
    if task_count > 0:
        progress = round_half_up((project.get("completedTaskCount") or 0) / task_count * 100)

    return TimelineItem(
        id=project_id,
        title=project.get("title") or "",
        kind="project",
        start=start,
        end=max(ends),
        color=project.get("color") or default_project_color,
        status=project.get("status") or "",
        progress=progress,
    )


def project_items(projects, tasks, milestones, today=None, project_filter=None):
    items = []
    for project in projects:
        if project_filter and project.get("id") != project_filter:
            continue
        item = project_item(project, tasks, milestones, today)
        if item is not None:
            items.append(item)
    return sorted(items, key=lambda i: i.start)


def task_item(task, color=unassigned_task_color, today=None):
    item = SchedulableItem.from_task(task)
    if item.scheduled_start is not None and item.scheduled_end is not None:
        start, end = item.scheduled_start, item.scheduled_end
    elif item.due_date is not None:
        start, end = item.due_date - timedelta(days=1), item.due_date
    else:
        start = end = _midnight(_today(today))
    return TimelineItem(
        id=item.id,
        title=item.title,
        kind="task",
        start=start,
        end=end,
        color=color,
        status="completed" if item.completed else "open",
        project_id=item.project_id,
        milestone_id=item.milestone_id,
    )


def milestone_item(milestone, task_items, color=default_project_color):
    """Span from the earliest task start to the later of the deadline and the last task end."""
    deadline = normalize(milestone.get("deadline"))
    starts = [t.start for t in task_items]
    ends = [t.end for t in task_items]
    if deadline is not None:
        starts.append(deadline)
        ends.append(deadline)
    if not ends:
        return None
    return TimelineItem(
        id=milestone.get("id"),
        title=milestone.get("title") or "",
        kind="milestone",
        start=min(starts),
        end=max(ends),
        color=color,
        status=milestone.get("status") or "",
        project_id=milestone.get("projectId"),
    )


def goal_items(goals, today=None):
    items = []
    for goal in goals:
        deadline = normalize(goal.get("deadline"))
        if deadline is None or is_completed(goal):
            continue
        items.append(TimelineItem(
            id=goal.get("id"),
            title=goal.get("title") or "",
            kind="goal",
            start=normalize(goal.get("createdAt")) or _midnight(_today(today)),
            end=deadline,
            color=goal_color,
            status=goal.get("status") or "",
            progress=goal.get("progress"),
        ))
    return sorted(items, key=lambda i: i.start)

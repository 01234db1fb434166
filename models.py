"""
Entity views and the derived view-model records.

Stored documents (tasks, habits, projects, milestones, goals) stay plain
dicts owned by the store. ``SchedulableItem`` and ``Habit`` are the read-only
views the engines work with; every date field goes through
``temporal.normalize`` when the view is built.
"""

import enum
import numbers
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional

from config import (DEFAULT_DURATION_MINUTES, DEFAULT_WORKING_HOURS,
                    NEAR_CAPACITY_PERCENT, OVERBOOKED_PERCENT)
from temporal import at_time, normalize, parse_hhmm, week_index


class Priority(enum.IntEnum):
    LOW = 0
    MEDIUM = 1
    HIGH = 2
    URGENT = 3

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            return cls.__members__.get(value.strip().upper(), cls.MEDIUM)
        return cls.MEDIUM

    @property
    def label(self):
        return self.name.lower()


def parse_duration(value):
    """Minutes for a stored duration; absent, negative or non-numeric values default."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return DEFAULT_DURATION_MINUTES
    if value != value or value < 0 or value == float("inf"):
        return DEFAULT_DURATION_MINUTES
    return int(value)


def is_completed(doc):
    return doc.get("status") == "completed" or bool(doc.get("completed"))


@dataclass(frozen=True)
class SchedulableItem:
    id: str
    title: str
    kind: str = "task"
    due_date: Optional[datetime] = None
    scheduled_start: Optional[datetime] = None
    scheduled_end: Optional[datetime] = None
    duration_minutes: int = DEFAULT_DURATION_MINUTES
    completed: bool = False
    priority: Priority = Priority.MEDIUM
    project_id: Optional[str] = None
    milestone_id: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_task(cls, doc):
        if isinstance(doc, cls):
            return doc
        return cls(
            id=str(doc.get("id", "")),
            title=doc.get("title") or "",
            kind="task",
            due_date=normalize(doc.get("dueDate")),
            scheduled_start=normalize(doc.get("scheduledStart")),
            scheduled_end=normalize(doc.get("scheduledEnd")),
            duration_minutes=parse_duration(doc.get("estimatedMinutes")),
            completed=is_completed(doc),
            priority=Priority.parse(doc.get("priority")),
            project_id=doc.get("projectId") or None,
            milestone_id=doc.get("milestoneId") or None,
            created_at=normalize(doc.get("createdAt")),
        )

    @property
    def end(self):
        if self.scheduled_start is None:
            return None
        return self.scheduled_start + timedelta(minutes=self.duration_minutes)


def as_items(tasks):
    return [SchedulableItem.from_task(t) for t in tasks]


@dataclass(frozen=True)
class Habit:
    id: str
    title: str
    frequency: str = "daily"
    days_of_week: tuple = ()
    scheduled_time: Optional[int] = None  # minutes since midnight
    duration_minutes: int = DEFAULT_DURATION_MINUTES
    archived: bool = False

    @classmethod
    def from_doc(cls, doc):
        if isinstance(doc, cls):
            return doc
        days = doc.get("daysOfWeek") or ()
        return cls(
            id=str(doc.get("id", "")),
            title=doc.get("title") or "",
            frequency=doc.get("frequency") or "daily",
            days_of_week=tuple(d for d in days if isinstance(d, int)),
            scheduled_time=parse_hhmm(doc.get("scheduledTime")),
            duration_minutes=parse_duration(doc.get("estimatedMinutes")),
            archived=bool(doc.get("isArchived")),
        )

    def occurs_on(self, day):
        if self.archived:
            return False
        if self.frequency == "daily":
            return True
        if self.frequency in ("weekly", "custom"):
            return week_index(day) in self.days_of_week
        return False

    def occurrence(self, day):
        """The habit as a schedulable item on ``day``, or None when it has no slot that day."""
        if self.scheduled_time is None or not self.occurs_on(day):
            return None
        hour, minute = divmod(self.scheduled_time, 60)
        if hour >= 24:
            return None
        return SchedulableItem(
            id=self.id,
            title=self.title,
            kind="habit",
            scheduled_start=at_time(day, hour, minute),
            duration_minutes=self.duration_minutes,
        )


def habit_occurrences(habits, day):
    occurrences = []
    for doc in habits:
        item = Habit.from_doc(doc).occurrence(day)
        if item is not None:
            occurrences.append(item)
    return occurrences


@dataclass(frozen=True)
class WorkingHours:
    start_minutes: int
    end_minutes: int

    @classmethod
    def from_strings(cls, start, end):
        start_minutes, end_minutes = parse_hhmm(start), parse_hhmm(end)
        if start_minutes is None or end_minutes is None or end_minutes < start_minutes:
            return cls.default()
        return cls(start_minutes, end_minutes)

    @classmethod
    def from_settings(cls, settings):
        hours = (settings or {}).get("workingHours") or {}
        return cls.from_strings(hours.get("start"), hours.get("end"))

    @classmethod
    def default(cls):
        return cls(parse_hhmm(DEFAULT_WORKING_HOURS["start"]),
                   parse_hhmm(DEFAULT_WORKING_HOURS["end"]))

    @property
    def total_minutes(self):
        return self.end_minutes - self.start_minutes

    def contains(self, minute_of_day):
        return self.start_minutes <= minute_of_day < self.end_minutes


# --- Derived view models ---

@dataclass
class DayCell:
    date: object
    is_current_month: bool
    is_today: bool
    is_weekend: bool
    due: List[SchedulableItem] = field(default_factory=list)
    scheduled: List[SchedulableItem] = field(default_factory=list)
    completed_scheduled: List[SchedulableItem] = field(default_factory=list)
    unscheduled_due: List[SchedulableItem] = field(default_factory=list)
    needs_attention: List[SchedulableItem] = field(default_factory=list)
    scheduled_minutes: int = 0
    available_minutes: int = 0
    capacity_percent: int = 0

    @property
    def due_count(self):
        return len(self.due)

    @property
    def scheduled_count(self):
        return len(self.scheduled)

    @property
    def is_overbooked(self):
        return self.capacity_percent > OVERBOOKED_PERCENT


@dataclass(frozen=True)
class Slot:
    hour: int
    minute: int
    is_working_hour: bool
    top_px: float


@dataclass(frozen=True)
class PlacedBlock:
    item: SchedulableItem
    top_px: float
    height_px: float

    @property
    def start(self):
        return self.item.scheduled_start

    @property
    def end(self):
        return self.item.end


@dataclass(frozen=True)
class Utilization:
    total_working_minutes: int
    scheduled_minutes: int
    utilization_percent: float

    @property
    def is_overbooked(self):
        return self.utilization_percent > OVERBOOKED_PERCENT

    @property
    def is_near_capacity(self):
        return self.utilization_percent > NEAR_CAPACITY_PERCENT

    @property
    def remaining_minutes(self):
        return self.total_working_minutes - self.scheduled_minutes


@dataclass
class DayGrid:
    day: object
    slots: List[Slot]
    blocks: List[PlacedBlock]
    utilization: Utilization
    unscheduled: List[SchedulableItem]
    slot_height_px: float

    @property
    def height_px(self):
        return len(self.slots) * self.slot_height_px


@dataclass(frozen=True)
class DayColumn:
    date: object
    is_today: bool
    is_weekend: bool
    scheduled_hours: float = 0.0
    available_hours: float = 0.0


@dataclass(frozen=True)
class ColumnSpan:
    start_idx: int
    end_idx: int  # exclusive
    total_columns: int

    @property
    def span(self):
        return self.end_idx - self.start_idx

    @property
    def left_percent(self):
        return self.start_idx / self.total_columns * 100

    @property
    def width_percent(self):
        return self.span / self.total_columns * 100


@dataclass(frozen=True)
class TimelineItem:
    id: str
    title: str
    kind: str  # project | milestone | task | goal
    start: datetime
    end: datetime
    color: str
    status: str = ""
    project_id: Optional[str] = None
    milestone_id: Optional[str] = None
    progress: Optional[int] = None


@dataclass(frozen=True)
class TimelineBar:
    item: TimelineItem
    columns: ColumnSpan

    @property
    def start_idx(self):
        return self.columns.start_idx

    @property
    def end_idx(self):
        return self.columns.end_idx

    @property
    def left_percent(self):
        return self.columns.left_percent

    @property
    def width_percent(self):
        return self.columns.width_percent


@dataclass
class MilestoneGroup:
    milestone: dict
    bar: Optional[TimelineBar]
    tasks: List[TimelineBar] = field(default_factory=list)

    @property
    def id(self):
        return self.milestone.get("id")

    @property
    def is_completed(self):
        return is_completed(self.milestone)


@dataclass
class ProjectGroup:
    project: TimelineItem
    bar: Optional[TimelineBar]
    milestone_groups: List[MilestoneGroup] = field(default_factory=list)
    unassigned: List[TimelineBar] = field(default_factory=list)

    @property
    def id(self):
        return self.project.id


@dataclass(frozen=True)
class TimelineRow:
    kind: str  # project | milestone | task
    depth: int
    id: str
    title: str
    bar: Optional[TimelineBar]
    expanded: bool = False

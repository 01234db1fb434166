"""
Recompute-on-change host for the three planner views.

``build_views`` derives every view model from one snapshot of the entity
lists plus the navigation state. ``Planner`` keeps the latest snapshot from
the store subscriptions and calls it again whenever an entity list or the
navigation changes.
"""

from collections import namedtuple
from dataclasses import dataclass, replace
from datetime import date

from calendar_month import build_month
from capacity import find_schedule_gaps, week_summary
from day_grid import build_day_grid, slot_start
from hierarchy import ExpandState, build_project_groups, visible_rows
from log_config import get_logger
from models import WorkingHours
from reschedule import RescheduleCoordinator, commit_day_shift
from store import KINDS
from temporal import add_days, day_of, shift_month, week_index
from timeline import (capacity_stats, default_window_start, generate_day_columns,
                      goal_items, navigate, to_bar, window_days)

logger = get_logger(__name__)

Views = namedtuple("Views", [
    "month_cells", "day_grid", "columns", "capacity", "groups", "goal_bars", "working_hours", "week", "gaps",
])


@dataclass(frozen=True)
class Navigation:
    month_anchor: date
    focus_day: date
    window_start: date
    view_mode: str = 'month'
    project_filter: str = None
    today: date = None

    @classmethod
    def starting(cls, today=None):
        today = day_of(today) if today is not None else date.today()
        return cls(month_anchor=today.replace(day=1), focus_day=today,
                   window_start=default_window_start(today), today=today)


def build_views(snapshot, nav, settings=None):
    working_hours = WorkingHours.from_settings(settings)
    tasks = snapshot.get("tasks", [])
    habits = snapshot.get("habits", [])

    columns = generate_day_columns(nav.window_start, window_days(nav.view_mode), tasks,
                                   working_hours, nav.today)
    groups = build_project_groups(snapshot.get("projects", []), snapshot.get("milestones", []),
                                  tasks, columns, nav.today, nav.project_filter)
    goal_bars = [b for b in (to_bar(g, columns) for g in goal_items(snapshot.get("goals", []), nav.today))
                 if b is not None]

    return Views(
        month_cells=build_month(nav.month_anchor, tasks, habits, working_hours, nav.today),
        day_grid=build_day_grid(nav.focus_day, tasks, habits, working_hours),
        columns=columns,
        capacity=capacity_stats(columns),
        groups=groups,
        goal_bars=goal_bars,
        working_hours=working_hours,
        week=week_summary(add_days(nav.focus_day, -week_index(nav.focus_day)), tasks, working_hours, habits),
        gaps=find_schedule_gaps(tasks, working_hours, nav.today, habits=habits),
    )


class Planner:
    def __init__(self, store, on_views=None, today=None):
        self.store = store
        self.on_views = on_views
        self.snapshot = {kind: [] for kind in KINDS}
        self.nav = Navigation.starting(today)
        self.expand = ExpandState()
        self.coordinator = RescheduleCoordinator(store.update)
        self.views = None
        self.rows = []
        self._unsubscribes = []
        self._starting = False

    def start(self):
        self._starting = True
        try:
            for kind in KINDS:
                self._unsubscribes.append(
                    self.store.subscribe(kind, lambda docs, kind=kind: self._on_change(kind, docs)))
        finally:
            self._starting = False
        self.refresh()

    def stop(self):
        for unsubscribe in self._unsubscribes:
            unsubscribe()
        self._unsubscribes = []

    def _on_change(self, kind, docs):
        self.snapshot[kind] = docs
        if not self._starting:
            self.refresh()

    def refresh(self):
        self.views = build_views(self.snapshot, self.nav, self.store.settings)
        self.expand.auto_expand(self.views.groups)
        self.rows = visible_rows(self.views.groups, self.expand)
        if self.on_views is not None:
            self.on_views(self.views)
        return self.views

    # --- Navigation ---

    def _navigate_to(self, **changes):
        self.nav = replace(self.nav, **changes)
        return self.refresh()

    def shift_month(self, delta):
        return self._navigate_to(month_anchor=shift_month(self.nav.month_anchor, delta))

    def focus(self, day):
        return self._navigate_to(focus_day=day_of(day))

    def navigate_timeline(self, direction):
        start = navigate(self.nav.window_start, self.nav.view_mode, direction, self.nav.today)
        return self._navigate_to(window_start=start)

    def go_to_today(self):
        today = self.nav.today
        return self._navigate_to(month_anchor=today.replace(day=1), focus_day=today,
                                 window_start=default_window_start(today))

    def set_view_mode(self, view_mode):
        return self._navigate_to(view_mode=view_mode)

    def filter_project(self, project_id):
        return self._navigate_to(project_filter=project_id or None)

    def toggle_project(self, project_id):
        self.expand.toggle_project(project_id)
        self.rows = visible_rows(self.views.groups, self.expand)
        return self.rows

    def toggle_milestone(self, milestone_id):
        self.expand.toggle_milestone(milestone_id)
        self.rows = visible_rows(self.views.groups, self.expand)
        return self.rows

    def expand_all(self):
        self.expand.expand_all(self.views.groups)
        self.rows = visible_rows(self.views.groups, self.expand)
        return self.rows

    def collapse_all(self):
        self.expand.collapse_all()
        self.rows = visible_rows(self.views.groups, self.expand)
        return self.rows

    # --- Mutations ---

    def drop_on_focus_day(self):
        return self.coordinator.drop(self.nav.focus_day)

    def shift_timeline_item(self, item, shift):
        return commit_day_shift(self.store.update, item, shift)

    def create_at_slot(self, hour, minute, fields):
        """Create a task scheduled at the clicked slot of the focus day."""
        doc = dict(fields)
        doc["scheduledStart"] = slot_start(self.nav.focus_day, hour, minute)
        doc.setdefault("status", "pending")
        created = self.store.create("tasks", doc)
        logger.info("Created %r at %s", created.get("title"), doc["scheduledStart"].isoformat(timespec="minutes"))
        return created

"""
Unit tests for the timeline module.

Tests cover:
- map_to_columns: clipping to the window and suppression
- Day columns, windows and navigation
- Timeline item extents for projects, tasks, milestones and goals
"""

from datetime import date, datetime, timedelta
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from models import WorkingHours
from timeline import (capacity_stats, default_window_start, generate_day_columns, goal_items,
                      map_to_columns, milestone_item, milestone_marker_percent, navigate,
                      project_item, project_items, task_item, to_bar, window_days)

TODAY = date(2025, 4, 10)
APRIL = generate_day_columns(date(2025, 4, 1), 30, today=TODAY)


class TestMapToColumns:
    """Tests for map_to_columns."""

    def test_starts_before_window(self):
        """An item starting before the window clamps to column 0."""
        span = map_to_columns(datetime(2025, 3, 20), datetime(2025, 4, 5), APRIL)
        assert span.start_idx == 0
        assert span.end_idx == 5  # index of 2025-04-06
        assert span.span == 5

    def test_extends_past_window(self):
        """An item running past the window clamps to the column count."""
        span = map_to_columns(datetime(2025, 4, 28), datetime(2025, 5, 10), APRIL)
        assert (span.start_idx, span.end_idx) == (27, 30)

    def test_single_day(self):
        """A same-day item covers exactly one column."""
        span = map_to_columns(datetime(2025, 4, 10, 9), datetime(2025, 4, 10, 17), APRIL)
        assert (span.start_idx, span.end_idx) == (9, 10)

    def test_outside_window_is_suppressed(self):
        """Items entirely before or after the window have no span."""
        assert map_to_columns(datetime(2025, 3, 1), datetime(2025, 3, 5), APRIL) is None
        assert map_to_columns(datetime(2025, 5, 2), datetime(2025, 5, 9), APRIL) is None

    def test_end_before_start_is_suppressed(self):
        """Inverted ranges never produce a negative-width bar."""
        assert map_to_columns(datetime(2025, 4, 10), datetime(2025, 4, 5), APRIL) is None

    def test_absent_dates(self):
        """Unreadable dates or an empty window give no span."""
        assert map_to_columns("garbage", datetime(2025, 4, 5), APRIL) is None
        assert map_to_columns(datetime(2025, 4, 1), datetime(2025, 4, 5), []) is None

    def test_raw_dates_are_normalized(self):
        """ISO strings are accepted directly."""
        span = map_to_columns("2025-04-02", "2025-04-03T12:00:00", APRIL)
        assert (span.start_idx, span.end_idx) == (1, 3)

    def test_percentages(self):
        """Bars expose left and width percentages of the window."""
        item = task_item({"id": "t", "dueDate": "2025-04-04"})
        bar = to_bar(item, APRIL)
        assert bar.left_percent == 2 / 30 * 100
        assert bar.width_percent == 2 / 30 * 100


class TestColumns:
    """Tests for day columns and window navigation."""

    def test_columns(self):
        """Columns flag weekends and today, and carry due-task hours."""
        tasks = [{"id": "a", "dueDate": "2025-04-10", "estimatedMinutes": 90},
                 {"id": "b", "dueDate": "2025-04-10", "status": "completed"}]
        columns = generate_day_columns(date(2025, 4, 7), 7, tasks, WorkingHours.default(), TODAY)
        assert [c.is_weekend for c in columns] == [False] * 5 + [True, True]
        assert columns[3].is_today
        assert columns[3].scheduled_hours == 1.5
        assert columns[0].available_hours == 8
        assert columns[5].available_hours == 0

    def test_capacity_stats(self):
        """Overbooked and near-capacity columns are counted on working days only."""
        tasks = [{"id": "a", "dueDate": "2025-04-07", "estimatedMinutes": 540},
                 {"id": "b", "dueDate": "2025-04-08", "estimatedMinutes": 420},
                 {"id": "c", "dueDate": "2025-04-12", "estimatedMinutes": 600}]
        stats = capacity_stats(generate_day_columns(date(2025, 4, 7), 7, tasks, today=TODAY))
        assert stats.overbooked == 1
        assert stats.near_capacity == 1
        assert stats.total_available_hours == 40
        assert stats.work_days == 5
        assert capacity_stats([]).work_days == 0

    def test_window_days(self):
        """View modes set the window length; unknown modes use the month window."""
        assert window_days('week') == 14
        assert window_days('quarter') == 90
        assert window_days('decade') == 35

    def test_navigate(self):
        """Prev and next step by the view's stride; today resets the window."""
        start = date(2025, 4, 1)
        assert navigate(start, 'week', 'next') == date(2025, 4, 8)
        assert navigate(start, 'month', 'prev') == date(2025, 3, 18)
        assert navigate(start, 'quarter', 'today', TODAY) == TODAY - timedelta(days=7)
        assert default_window_start(TODAY) == date(2025, 4, 3)


class TestItems:
    """Tests for timeline item extents."""

    def test_project_item(self):
        """A project ends at its latest deadline among itself, its tasks and milestones."""
        project = {"id": "p", "title": "Site", "startDate": "2025-04-01", "deadline": "2025-04-20",
                   "taskCount": 4, "completedTaskCount": 1}
        tasks = [{"id": "t", "projectId": "p", "dueDate": "2025-04-25"}]
        milestones = [{"id": "m", "projectId": "p", "deadline": "2025-04-22"}]
        item = project_item(project, tasks, milestones, TODAY)
        assert item.start == datetime(2025, 4, 1)
        assert item.end == datetime(2025, 4, 25)
        assert item.progress == 25
        assert item.color == "#6366f1"

    def test_project_without_dates(self):
        """A project with no end date anywhere has no bar."""
        assert project_item({"id": "p"}, [], [], TODAY) is None

    def test_project_start_falls_back(self):
        """Without a start date, the creation date and then today are used."""
        item = project_item({"id": "p", "deadline": "2025-05-01", "createdAt": "2025-03-30"}, [], [], TODAY)
        assert item.start == datetime(2025, 3, 30)
        item = project_item({"id": "p", "deadline": "2025-05-01"}, [], [], TODAY)
        assert item.start == datetime(2025, 4, 10)

    def test_project_filter_and_order(self):
        """Projects are filtered by id and sorted by start."""
        projects = [{"id": "b", "startDate": "2025-04-05", "deadline": "2025-04-09"},
                    {"id": "a", "startDate": "2025-04-01", "deadline": "2025-04-09"}]
        assert [p.id for p in project_items(projects, [], [], TODAY)] == ["a", "b"]
        assert [p.id for p in project_items(projects, [], [], TODAY, project_filter="b")] == ["b"]

    def test_task_item_extents(self):
        """Scheduled ranges win, then the day before the due date, then today."""
        scheduled = task_item({"id": "t", "scheduledStart": "2025-04-02T09:00:00",
                               "scheduledEnd": "2025-04-03T17:00:00", "dueDate": "2025-04-09"})
        assert (scheduled.start, scheduled.end) == (datetime(2025, 4, 2, 9), datetime(2025, 4, 3, 17))
        due = task_item({"id": "t", "dueDate": "2025-04-09"})
        assert (due.start, due.end) == (datetime(2025, 4, 8), datetime(2025, 4, 9))
        bare = task_item({"id": "t"}, today=TODAY)
        assert bare.start == bare.end == datetime(2025, 4, 10)

    def test_milestone_item(self):
        """A milestone spans its tasks and its deadline."""
        tasks = [task_item({"id": "t", "dueDate": "2025-04-09"})]
        item = milestone_item({"id": "m", "deadline": "2025-04-15"}, tasks)
        assert (item.start, item.end) == (datetime(2025, 4, 8), datetime(2025, 4, 15))
        assert milestone_item({"id": "m"}, []) is None

    def test_goal_items(self):
        """Open goals with a deadline get items; completed ones do not."""
        goals = [{"id": "g1", "deadline": "2025-04-30", "createdAt": "2025-04-01"},
                 {"id": "g2", "deadline": "2025-04-30", "status": "completed"},
                 {"id": "g3"}]
        assert [g.id for g in goal_items(goals, TODAY)] == ["g1"]

    def test_milestone_marker(self):
        """Markers sit at the centre of the deadline column, or nowhere off-screen."""
        assert milestone_marker_percent("2025-04-01", APRIL) == 0.5 / 30 * 100
        assert milestone_marker_percent("2025-05-01", APRIL) is None

"""
Unit tests for the planner module.

Tests cover:
- build_views: one recompute from a snapshot and navigation state
- Planner: subscription-driven refresh, navigation, and mutations
"""

from datetime import date, datetime
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from planner import Navigation, Planner, build_views
from store import EntityStore

TODAY = date(2025, 3, 10)

WORKSPACE = {
    "settings": {"workingHours": {"start": "09:00", "end": "17:00"}},
    "projects": [{"id": "p", "title": "Site", "startDate": "2025-03-01", "deadline": "2025-03-20"}],
    "milestones": [{"id": "m", "projectId": "p", "title": "Build", "order": 1, "deadline": "2025-03-18"}],
    "tasks": [
        {"id": "t1", "title": "Write", "projectId": "p", "milestoneId": "m",
         "scheduledStart": "2025-03-10T09:00:00", "estimatedMinutes": 120, "dueDate": "2025-03-12"},
        {"id": "t2", "title": "Review", "dueDate": "2025-03-11"},
    ],
    "habits": [],
    "goals": [{"id": "g", "title": "Ship", "deadline": "2025-03-25", "createdAt": "2025-03-01"}],
}


def _planner(**kwargs):
    store = EntityStore(WORKSPACE)
    planner = Planner(store, today=TODAY, **kwargs)
    planner.start()
    return store, planner


class TestBuildViews:
    """Tests for the single recompute function."""

    def test_views_from_snapshot(self):
        """Every view is derived from the snapshot and navigation."""
        views = build_views(WORKSPACE, Navigation.starting(TODAY), WORKSPACE["settings"])
        assert len(views.month_cells) % 7 == 0
        assert [b.item.id for b in views.day_grid.blocks] == ["t1"]
        assert len(views.columns) == 35
        assert views.columns[0].date == date(2025, 3, 3)
        assert [g.id for g in views.groups] == ["p"]
        assert [b.item.id for b in views.goal_bars] == ["g"]
        assert views.working_hours.total_minutes == 480

    def test_week_and_gaps(self):
        """The focus week is summarized and open working days ahead are listed."""
        views = build_views(WORKSPACE, Navigation.starting(TODAY), WORKSPACE["settings"])
        assert views.week.week_start == date(2025, 3, 9)
        assert views.week.hours_scheduled == 2.0
        assert views.week.hours_available == 40.0
        assert views.week.utilization == 5
        assert len(views.gaps) == 10
        assert views.gaps[0].date == TODAY
        assert views.gaps[0].available_minutes == 360


class TestPlanner:
    """Tests for the recompute host."""

    def test_start_refreshes_once(self):
        """Starting delivers a single set of views."""
        delivered = []
        _planner(on_views=delivered.append)
        assert len(delivered) == 1

    def test_store_changes_trigger_refresh(self):
        """An update in the store recomputes the views."""
        store, planner = _planner()
        store.update("t2", {"scheduledStart": datetime(2025, 3, 10, 13)})
        assert [b.item.id for b in planner.views.day_grid.blocks] == ["t1", "t2"]

    def test_first_incomplete_milestone_auto_expanded(self):
        """The first refresh expands the first open milestone."""
        _, planner = _planner()
        assert planner.expand.is_milestone_expanded("m")

    def test_navigation(self):
        """Navigation changes recompute the affected views."""
        _, planner = _planner()
        planner.shift_month(1)
        assert planner.nav.month_anchor == date(2025, 4, 1)
        planner.focus(date(2025, 3, 11))
        assert planner.views.day_grid.day == date(2025, 3, 11)
        planner.navigate_timeline('next')
        assert planner.nav.window_start == date(2025, 3, 17)
        planner.set_view_mode('week')
        assert len(planner.views.columns) == 14
        planner.go_to_today()
        assert planner.nav.month_anchor == date(2025, 3, 1)
        assert planner.nav.window_start == date(2025, 3, 3)

    def test_project_filter(self):
        """Filtering hides other projects; an empty filter shows all."""
        _, planner = _planner()
        planner.filter_project("other")
        assert planner.views.groups == []
        planner.filter_project("")
        assert [g.id for g in planner.views.groups] == ["p"]

    def test_toggle_rows(self):
        """Toggling a project reveals its milestone and tasks."""
        _, planner = _planner()
        assert [r.id for r in planner.rows] == ["p"]
        rows = planner.toggle_project("p")
        assert [r.id for r in rows] == ["p", "m", "t1"]
        assert [r.id for r in planner.collapse_all()] == ["p"]

    def test_drop_on_focus_day(self):
        """A drop reschedules onto the focused day and the views follow."""
        store, planner = _planner()
        planner.coordinator.begin({"id": "t2", "title": "Review"})
        planner.coordinator.hover((15, 0))
        assert planner.drop_on_focus_day() == datetime(2025, 3, 10, 15)
        assert [b.item.id for b in planner.views.day_grid.blocks] == ["t1", "t2"]

    def test_drop_survives_failing_redraw(self):
        """A redraw error after the update is logged and the drop still reports the new start."""
        drawn = []

        def on_views(views):
            drawn.append(views)
            if len(drawn) > 1:
                raise RuntimeError("canvas gone")

        store, planner = _planner(on_views=on_views)
        planner.coordinator.begin({"id": "t2", "title": "Review"})
        planner.coordinator.hover((10, 0))
        assert planner.drop_on_focus_day() == datetime(2025, 3, 10, 10)
        assert store.find("t2")[1]["scheduledStart"] == datetime(2025, 3, 10, 10)

    def test_create_at_slot(self):
        """Clicking a slot creates a pending task scheduled there."""
        store, planner = _planner()
        created = planner.create_at_slot(11, 30, {"title": "Call", "estimatedMinutes": 15})
        assert created["scheduledStart"] == datetime(2025, 3, 10, 11, 30)
        assert created["status"] == "pending"
        assert "Call" in [b.item.title for b in planner.views.day_grid.blocks]

    def test_stop_unsubscribes(self):
        """After stopping, store changes no longer refresh."""
        delivered = []
        store, planner = _planner(on_views=delivered.append)
        planner.stop()
        store.update("t2", {"title": "Changed"})
        assert len(delivered) == 1

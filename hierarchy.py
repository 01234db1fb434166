"""
Project -> milestone -> task grouping for the timeline, and its expand state.
"""

import numbers

from models import MilestoneGroup, ProjectGroup, TimelineRow, is_completed
from timeline import milestone_item, project_items, task_item, to_bar


def _milestone_order(milestone):
    order = milestone.get("order")
    if isinstance(order, numbers.Real) and not isinstance(order, bool) and order == order:
        return order
    return 0


def build_project_groups(projects, milestones, tasks, columns, today=None, project_filter=None):
    """Group open tasks under their project's milestones.

    Milestones are ordered by their ``order`` field. A task with no milestone,
    or naming a milestone that is not part of its project, is unassigned.
    Tasks whose bars fall outside the window are left out of the groups.
    """
    groups = []
    for project in project_items(projects, tasks, milestones, today, project_filter):
        project_milestones = sorted(
            (m for m in milestones if m.get("projectId") == project.id),
            key=_milestone_order,
        )
        milestone_ids = {m.get("id") for m in project_milestones}
        open_tasks = [t for t in tasks if t.get("projectId") == project.id and not is_completed(t)]

        by_milestone = {mid: [] for mid in milestone_ids}
        unassigned = []
        for task in open_tasks:
            item = task_item(task, color=project.color, today=today)
            if item.milestone_id in milestone_ids:
                by_milestone[item.milestone_id].append(item)
            else:
                unassigned.append(item)

        milestone_groups = []
        for milestone in project_milestones:
            items = by_milestone[milestone.get("id")]
            bars = [b for b in (to_bar(i, columns) for i in items) if b is not None]
            milestone_groups.append(MilestoneGroup(
                milestone=milestone,
                bar=to_bar(milestone_item(milestone, items, color=project.color), columns),
                tasks=bars,
            ))

        groups.append(ProjectGroup(
            project=project,
            bar=to_bar(project, columns),
            milestone_groups=milestone_groups,
            unassigned=[b for b in (to_bar(i, columns) for i in unassigned) if b is not None],
        ))
    return groups


class ExpandState:
    """Independent expanded sets for projects and milestones.

    Collapsing a project leaves its milestones' flags alone; they are simply
    not shown until the project is expanded again.
    """

    def __init__(self):
        self.expanded_projects = set()
        self.expanded_milestones = set()
        self._auto_expand_done = False

    def is_project_expanded(self, project_id):
        return project_id in self.expanded_projects

    def is_milestone_expanded(self, milestone_id):
        return milestone_id in self.expanded_milestones

    def toggle_project(self, project_id):
        self._auto_expand_done = True
        _toggle(self.expanded_projects, project_id)

    def toggle_milestone(self, milestone_id):
        self._auto_expand_done = True
        _toggle(self.expanded_milestones, milestone_id)

    def expand_all(self, groups):
        self._auto_expand_done = True
        for group in groups:
            self.expanded_projects.add(group.id)
            self.expanded_milestones.update(mg.id for mg in group.milestone_groups)

    def collapse_all(self):
        self._auto_expand_done = True
        self.expanded_projects.clear()
        self.expanded_milestones.clear()

    def auto_expand(self, groups):
        """Expand the first incomplete milestone across all projects, once.

        Returns the milestone id that was expanded, or None.
        """
        if self._auto_expand_done:
            return None
        for group in groups:
            for milestone_group in group.milestone_groups:
                if not milestone_group.is_completed:
                    self.expanded_milestones.add(milestone_group.id)
                    self._auto_expand_done = True
                    return milestone_group.id
        return None


def _toggle(members, key):
    if key in members:
        members.discard(key)
    else:
        members.add(key)


def visible_rows(groups, state):
    """Flatten groups into the rows currently shown, honouring the expand state."""
    rows = []
    for group in groups:
        project_open = state.is_project_expanded(group.id)
        rows.append(TimelineRow("project", 0, group.id, group.project.title, group.bar, project_open))
        if not project_open:
            continue
        for milestone_group in group.milestone_groups:
            milestone_open = state.is_milestone_expanded(milestone_group.id)
            rows.append(TimelineRow("milestone", 1, milestone_group.id,
                                    milestone_group.milestone.get("title") or "",
                                    milestone_group.bar, milestone_open))
            if milestone_open:
                rows.extend(TimelineRow("task", 2, b.item.id, b.item.title, b) for b in milestone_group.tasks)
        rows.extend(TimelineRow("task", 1, b.item.id, b.item.title, b) for b in group.unassigned)
    return rows

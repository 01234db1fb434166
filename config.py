import collections

# --- Day Grid ---

GRID_START_HOUR = 6
GRID_END_HOUR = 23
SLOT_MINUTES = 30
SLOT_HEIGHT_PX = 60
BLOCK_GAP_PX = 4  # visual gap between stacked blocks

DEFAULT_DURATION_MINUTES = 30
DEFAULT_WORKING_HOURS = {"start": "09:00", "end": "17:00"}

NEAR_CAPACITY_PERCENT = 80
OVERBOOKED_PERCENT = 100

# --- Timeline ---

VIEW_MODE_DAYS = {
    'week': 14,
    'month': 35,
    'quarter': 90,
}

NAV_STEP_DAYS = {
    'week': 7,
    'month': 14,
    'quarter': 30,
}

TODAY_LEAD_DAYS = 7  # the timeline opens a week before today

# --- Colors ---

priority_colors = collections.OrderedDict([
    ('low', '#3b82f6'),
    ('medium', '#eab308'),
    ('high', '#f97316'),
    ('urgent', '#ef4444'),
])

capacity_colors = collections.OrderedDict([
    ('available', '#10b981'),
    ('comfortable', '#3b82f6'),
    ('busy', '#f59e0b'),
    ('full', '#ef4444'),
    ('overbooked', '#dc2626'),
])

default_project_color = '#6366f1'
unassigned_task_color = '#64748b'
goal_color = '#10b981'

# --- Default Data ---

# Sample workspace used by "New Sample Workspace" in the desktop shell.
default_workspace = {
    "settings": {"workingHours": dict(DEFAULT_WORKING_HOURS)},
    "projects": [
        {"id": "p-website", "title": "Website Relaunch", "status": "active",
         "color": "#6366f1", "taskCount": 4, "completedTaskCount": 1},
    ],
    "milestones": [
        {"id": "m-design", "projectId": "p-website", "title": "Design", "order": 1,
         "status": "completed"},
        {"id": "m-build", "projectId": "p-website", "title": "Build", "order": 2,
         "status": "active"},
    ],
    "tasks": [
        {"id": "t-wireframes", "title": "Wireframes", "projectId": "p-website",
         "milestoneId": "m-design", "status": "completed", "priority": "medium",
         "estimatedMinutes": 120},
        {"id": "t-templates", "title": "Page templates", "projectId": "p-website",
         "milestoneId": "m-build", "status": "pending", "priority": "high",
         "estimatedMinutes": 180},
        {"id": "t-copy", "title": "Review copy", "projectId": "p-website",
         "status": "pending", "priority": "low", "estimatedMinutes": 60},
        {"id": "t-inbox", "title": "Clear inbox", "status": "pending",
         "priority": "medium", "estimatedMinutes": 30},
    ],
    "habits": [
        {"id": "h-walk", "title": "Morning walk", "frequency": "daily",
         "scheduledTime": "07:30", "estimatedMinutes": 30},
    ],
    "goals": [],
}

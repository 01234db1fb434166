"""
matplotlib drawing for the three planner views.

Each ``draw_*`` function clears the figure it is given and returns what the
shell needs for hit testing. Capacity fills are clamped to 100% here only;
labels and colours keep the real percentage.
"""

from matplotlib.patches import Patch, Rectangle

from capacity import capacity_color, capacity_label
from config import goal_color, priority_colors
from temporal import format_time, format_time_short
from timeline import milestone_marker_percent

WEEKDAY_LABELS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]

_ROW_HEIGHTS = {"project": 0.6, "milestone": 0.45, "task": 0.3, "goal": 0.35}


def _clamped(percent):
    return max(0.0, min(percent, 100.0)) / 100.0


def _empty(ax, message):
    ax.text(0.5, 0.5, message, horizontalalignment='center', verticalalignment='center',
            transform=ax.transAxes)
    ax.set_axis_off()


# --- Month ---

def draw_month(figure, cells, title):
    figure.clear()
    ax = figure.add_subplot(111)
    if not cells:
        _empty(ax, "Nothing to show for this month.")
        return ax

    week_count = len(cells) // 7
    for index, cell in enumerate(cells):
        row, col = divmod(index, 7)
        face = '#ffffff' if cell.is_current_month else '#f1f5f9'
        ax.add_patch(Rectangle((col, row), 1, 1, facecolor=face,
                               edgecolor='#2563eb' if cell.is_today else '#cbd5e1',
                               linewidth=2 if cell.is_today else 0.5))

        if cell.available_minutes > 0:
            fill = _clamped(cell.capacity_percent) * 0.2
            ax.add_patch(Rectangle((col, row + 1 - fill), 1, fill,
                                   facecolor=capacity_color(cell.capacity_percent), alpha=0.8))

        ax.text(col + 0.06, row + 0.2, str(cell.date.day), fontsize=9,
                fontweight='bold' if cell.is_today else 'normal',
                color='#0f172a' if cell.is_current_month else '#94a3b8')
        if cell.due_count or cell.scheduled_count:
            ax.text(col + 0.06, row + 0.45, f"{cell.due_count} due / {cell.scheduled_count} sched",
                    fontsize=7, color='#475569')
        if cell.needs_attention:
            ax.text(col + 0.06, row + 0.65, f"{len(cell.needs_attention)} need attention",
                    fontsize=7, color='#dc2626')
        if cell.available_minutes > 0 and cell.capacity_percent:
            ax.text(col + 0.94, row + 0.2, f"{cell.capacity_percent}%", fontsize=7,
                    horizontalalignment='right', color=capacity_color(cell.capacity_percent))

    ax.set_xlim(0, 7)
    ax.set_ylim(week_count, 0)
    ax.set_xticks([c + 0.5 for c in range(7)])
    ax.set_xticklabels(WEEKDAY_LABELS)
    ax.xaxis.tick_top()
    ax.set_yticks([])
    ax.set_title(title)
    figure.tight_layout()
    return ax


def cell_at(cells, x, y):
    """The month cell under data coordinates ``(x, y)``, or None."""
    if x is None or y is None or x < 0 or y < 0:
        return None
    index = int(y) * 7 + int(x)
    if int(x) >= 7 or index >= len(cells):
        return None
    return cells[index]


# --- Day grid ---

def draw_day_grid(figure, grid, week=None):
    """Draws the capacity header and the slot grid.

    Returns ``(ax, patches)`` where ``patches`` pairs each drawn block patch
    with its ``PlacedBlock``. The grid axis uses pixel offsets on y, so
    ``event.ydata`` feeds straight into ``slot_at_offset``.
    """
    figure.clear()
    header_ax, ax = figure.subplots(2, 1, gridspec_kw={'height_ratios': [1, 14]})

    utilization = grid.utilization
    percent = utilization.utilization_percent
    header_ax.barh(0, 100, color='#e2e8f0', height=0.6)
    header_ax.barh(0, _clamped(percent) * 100, color=capacity_color(percent), height=0.6)
    header_ax.set_xlim(0, 100)
    header_ax.set_axis_off()
    summary = (f"{utilization.scheduled_minutes / 60:.1f}h of {utilization.total_working_minutes / 60:.1f}h"
               f" - {capacity_label(percent)}")
    if utilization.is_overbooked:
        summary += f" - {-utilization.remaining_minutes} min over"
    if grid.unscheduled:
        summary += f" - {len(grid.unscheduled)} unscheduled"
    if week is not None:
        summary += (f"\nWeek of {week.label}: {week.hours_scheduled:.1f}h of {week.hours_available:.1f}h"
                    f" ({week.utilization}%), {week.days_overbooked} overbooked")
    header_ax.set_title(f"{grid.day:%A %d %B %Y}\n{summary}", fontsize=10)

    height = grid.height_px
    for slot in grid.slots:
        ax.axhspan(slot.top_px, slot.top_px + grid.slot_height_px,
                   color='#ffffff' if slot.is_working_hour else '#f1f5f9', zorder=0)
        ax.axhline(slot.top_px, color='#e2e8f0', linewidth=0.5, zorder=1)

    patches = []
    for block in grid.blocks:
        item = block.item
        color = goal_color if item.kind == "habit" else priority_colors.get(item.priority.label, '#94a3b8')
        patch = ax.barh(y=block.top_px + block.height_px / 2, width=0.9, left=0.08,
                        height=block.height_px, color=color, alpha=0.5 if item.completed else 0.85,
                        edgecolor='black', linewidth=0.5, zorder=2)[0]
        start = item.scheduled_start
        ax.text(0.1, block.top_px + 4, f"{item.title}  {format_time(start.hour, start.minute)}",
                fontsize=8, verticalalignment='top', zorder=3, clip_on=True)
        patches.append((patch, block))

    # major ticks on the hour
    ticks = [s.top_px for s in grid.slots if s.minute == 0]
    ax.set_yticks(ticks)
    ax.set_yticklabels([format_time_short(s.hour, s.minute) for s in grid.slots if s.minute == 0])
    ax.set_xticks([])
    ax.set_xlim(0, 1)
    ax.set_ylim(height, 0)

    ax.legend(handles=[Patch(facecolor=c, edgecolor='black', label=p) for p, c in priority_colors.items()]
              + [Patch(facecolor=goal_color, edgecolor='black', label='habit')],
              loc='lower right', fontsize=7)
    figure.tight_layout()
    return ax, patches


def hover_marker(ax, slot_height_px):
    """An invisible slot highlight the shell moves while a drag hovers."""
    marker = Rectangle((0, 0), 1, slot_height_px, facecolor='#2563eb', alpha=0.15,
                       visible=False, zorder=4)
    ax.add_patch(marker)
    return marker


def move_hover(marker, slot):
    if slot is None:
        marker.set_visible(False)
        return
    marker.set_y(slot.top_px)
    marker.set_visible(True)


# --- Timeline ---

def draw_timeline(figure, columns, rows, groups=(), goal_bars=(), stats=None, title="Timeline", gaps=None):
    """Draws one bar per visible row and per goal, in column units on x.

    Returns ``(ax, patches)`` pairing each bar patch with its ``TimelineRow``
    (goals get a row of kind ``goal``).
    """
    figure.clear()
    ax = figure.add_subplot(111)
    if not columns:
        _empty(ax, "No days in the window.")
        return ax, []

    for index, column in enumerate(columns):
        if column.is_weekend:
            ax.axvspan(index, index + 1, color='#f1f5f9', zorder=0)
        if column.is_today:
            ax.axvline(index + 0.5, color='#ef4444', linewidth=1, zorder=1)

    labels, ticks, patches = [], [], []
    row_y = {}
    all_rows = list(rows) + [_GoalRow(bar) for bar in goal_bars]
    for y, row in enumerate(all_rows):
        ticks.append(y)
        marker = ""
        if row.kind in ("project", "milestone"):
            marker = "- " if row.expanded else "+ "
        labels.append("    " * row.depth + marker + row.title)
        row_y[(row.kind, row.id)] = y

        bar = row.bar
        if bar is None:
            continue
        item = bar.item
        patch = ax.barh(y=y, width=bar.columns.span, left=bar.start_idx, height=_ROW_HEIGHTS.get(row.kind, 0.3),
                        color=item.color, alpha=0.45 if item.status == "completed" else 0.85,
                        edgecolor='black', linewidth=0.5, zorder=2)[0]
        if item.progress:
            ax.barh(y=y, width=bar.columns.span * _clamped(item.progress), left=bar.start_idx,
                    height=_ROW_HEIGHTS.get(row.kind, 0.3) / 3, color='#0f172a', alpha=0.6, zorder=3)
        patches.append((patch, row))

    for group in groups:
        for milestone_group in group.milestone_groups:
            y = row_y.get(("milestone", milestone_group.id))
            percent = milestone_marker_percent(milestone_group.milestone.get("deadline"), columns)
            if y is None or percent is None:
                continue
            ax.plot(percent / 100 * len(columns), y, marker='D', markersize=7, zorder=4,
                    color='#10b981' if milestone_group.is_completed else '#f59e0b',
                    markeredgecolor='black')

    ax.set_yticks(ticks)
    ax.set_yticklabels(labels, fontsize=8)
    ax.set_ylim(len(all_rows) - 0.5 if all_rows else 0.5, -0.5)

    step = 1 if len(columns) <= 14 else 7
    ax.set_xticks([i + 0.5 for i in range(0, len(columns), step)])
    ax.set_xticklabels([c.date.strftime('%d-%b') for c in columns[::step]], rotation=90, ha='center')
    for label, column in zip(ax.get_xticklabels(), columns[::step]):
        if not column.is_weekend and column.scheduled_hours > column.available_hours:
            label.set_color('#dc2626')
    ax.set_xlim(0, len(columns))
    ax.grid(axis='x', linestyle='--', alpha=0.4)

    if stats is not None:
        title = (f"{title} - {stats.total_scheduled_hours:.1f}h due of {stats.total_available_hours:.1f}h"
                 f" over {stats.work_days} work days"
                 f" - {stats.overbooked} overbooked, {stats.near_capacity} near capacity")
    if gaps:
        title += f" - {len(gaps)} open days ahead, next {gaps[0].date:%a %d %b}"
    ax.set_title(title)
    figure.tight_layout()
    return ax, patches


class _GoalRow:
    kind = "goal"
    depth = 0
    expanded = False

    def __init__(self, bar):
        self.bar = bar
        self.id = bar.item.id
        self.title = bar.item.title


def export_figure(figure, filepath):
    figure.savefig(filepath, bbox_inches='tight', dpi=300)

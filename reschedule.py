"""
Drag-to-reschedule commit protocol.

One drag is in flight at a time: Idle -> Dragging -> Hovering -> Idle. A drop
on a slot issues exactly one update that rewrites the item's scheduled start;
whatever the update does, the drag state is cleared afterwards. Nothing is
changed locally; the store subscription delivers the new arrangement.
"""

import enum
from collections import namedtuple
from datetime import timedelta

from day_grid import slot_start
from log_config import get_logger
from temporal import round_half_up

logger = get_logger(__name__)

DraggedItem = namedtuple("DraggedItem", ["id", "title", "duration_minutes"])
HoveredSlot = namedtuple("HoveredSlot", ["hour", "minute"])


class DragState(enum.Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    HOVERING = "hovering"


def _dragged_from(item):
    item = getattr(item, "item", item)  # PlacedBlock -> SchedulableItem
    if isinstance(item, dict):
        return DraggedItem(item.get("id"), item.get("title", ""), item.get("estimatedMinutes"))
    return DraggedItem(item.id, getattr(item, "title", ""), getattr(item, "duration_minutes", None))


class RescheduleCoordinator:
    def __init__(self, update, log=None):
        self._update = update
        self._log = log or logger
        self._dragged = None
        self._hovered = None

    @property
    def state(self):
        if self._dragged is None:
            return DragState.IDLE
        if self._hovered is None:
            return DragState.DRAGGING
        return DragState.HOVERING

    @property
    def dragged(self):
        return self._dragged

    @property
    def hovered(self):
        return self._hovered

    def begin(self, item):
        """Start dragging ``item``. Returns False when another drag is still in flight."""
        if self._dragged is not None:
            self._log.warning("Ignoring drag of %s while %s is still being dragged",
                              getattr(item, "id", item), self._dragged.id)
            return False
        self._dragged = _dragged_from(item)
        self._hovered = None
        return True

    def hover(self, slot):
        """Record the slot under the pointer; None means the pointer left every slot."""
        if self._dragged is None:
            return
        if slot is None:
            self._hovered = None
        else:
            self._hovered = HoveredSlot(slot.hour, slot.minute) if hasattr(slot, "hour") else HoveredSlot(*slot)

    def drop(self, day):
        """Commit the drag onto ``day`` at the hovered slot.

        Returns the new scheduled start when the update went through, otherwise None.
        Dropping outside every slot behaves like ``cancel``.
        """
        if self._dragged is None:
            return None
        if self._hovered is None:
            self.cancel()
            return None

        dragged, hovered = self._dragged, self._hovered
        new_start = slot_start(day, hovered.hour, hovered.minute)
        committed = None
        try:
            self._update(dragged.id, {"scheduledStart": new_start})
            committed = new_start
            self._log.info("Scheduled %r at %s", dragged.title, new_start.isoformat(timespec="minutes"))
        except Exception:
            self._log.exception("Failed to schedule %r (%s)", dragged.title, dragged.id)
        finally:
            self._clear()
        return committed

    def cancel(self):
        self._clear()

    def _clear(self):
        self._dragged = None
        self._hovered = None


# --- Timeline drags ---

_END_FIELDS = {
    "task": "dueDate",
    "project": "deadline",
    "milestone": "deadline",
    "goal": "deadline",
}


def day_shift(delta_px, grid_width_px, column_count):
    """Whole days a horizontal drag of ``delta_px`` covers on the timeline grid."""
    if grid_width_px <= 0 or column_count <= 0:
        return 0
    return round_half_up(delta_px / (grid_width_px / column_count))


def commit_day_shift(update, item, shift, log=None):
    """Move a timeline item's end date by ``shift`` days with a single update.

    Returns the fields sent, or None when nothing was sent or the update failed.
    """
    log = log or logger
    field_name = _END_FIELDS.get(item.kind)
    if shift == 0 or field_name is None:
        return None

    fields = {field_name: item.end + timedelta(days=shift)}
    try:
        update(item.id, fields)
    except Exception:
        log.exception("Failed to move %s %r by %d days", item.kind, item.title, shift)
        return None
    log.info("Rescheduled %s %r by %d days", item.kind, item.title, shift)
    return fields

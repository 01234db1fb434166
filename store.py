"""
In-memory document store standing in for the persistence service.

It offers the three calls the planner relies on: ``subscribe`` (push-based,
the current snapshot is delivered immediately and after every change),
``update`` and ``create``. Workspaces are saved and opened as JSON files with
datetimes written as ISO strings.
"""

import copy
import json
import uuid
from datetime import date, datetime

from log_config import get_logger

logger = get_logger(__name__)

KINDS = ("tasks", "habits", "projects", "milestones", "goals")


class UnknownEntityError(KeyError):
    pass


def _json_default(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class EntityStore:
    def __init__(self, workspace=None):
        self._docs = {kind: [] for kind in KINDS}
        self._listeners = {kind: [] for kind in KINDS}
        self.settings = {}
        if workspace:
            self.replace(workspace)

    # --- Reads ---

    def snapshot(self, kind):
        return copy.deepcopy(self._docs[kind])

    def find(self, entity_id):
        for kind in KINDS:
            for doc in self._docs[kind]:
                if doc.get("id") == entity_id:
                    return kind, doc
        raise UnknownEntityError(entity_id)

    def subscribe(self, kind, on_change):
        """Register ``on_change`` for ``kind``; returns a function that unsubscribes it."""
        if kind not in self._listeners:
            raise ValueError(f"Unknown entity kind '{kind}'.")
        self._listeners[kind].append(on_change)
        on_change(self.snapshot(kind))

        def unsubscribe():
            if on_change in self._listeners[kind]:
                self._listeners[kind].remove(on_change)

        return unsubscribe

    # --- Mutations ---

    def update(self, entity_id, fields):
        kind, doc = self.find(entity_id)
        doc.update(copy.deepcopy(fields))
        doc["updatedAt"] = datetime.now()
        logger.debug("Updated %s %s: %s", kind, entity_id, sorted(fields))
        self._notify(kind)

    def create(self, kind, fields):
        if kind not in self._docs:
            raise ValueError(f"Unknown entity kind '{kind}'.")
        doc = copy.deepcopy(fields)
        doc.setdefault("id", uuid.uuid4().hex)
        doc.setdefault("createdAt", datetime.now())
        self._docs[kind].append(doc)
        logger.debug("Created %s %s", kind, doc["id"])
        self._notify(kind)
        return copy.deepcopy(doc)

    def delete(self, entity_id):
        kind, doc = self.find(entity_id)
        self._docs[kind].remove(doc)
        self._notify(kind)

    def replace(self, workspace):
        """Swap in a whole workspace (settings plus every kind) and notify all subscribers."""
        self.settings = copy.deepcopy(workspace.get("settings") or {})
        for kind in KINDS:
            self._docs[kind] = copy.deepcopy(workspace.get(kind) or [])
        for kind in KINDS:
            self._notify(kind)

    def _notify(self, kind):
        snapshot = self.snapshot(kind)
        for listener in list(self._listeners[kind]):
            try:
                listener(copy.deepcopy(snapshot))
            except Exception:
                # the change is already stored
                logger.exception("Subscriber for %s failed to handle a change", kind)

    # --- Files ---

    def to_workspace(self):
        workspace = {"settings": copy.deepcopy(self.settings)}
        for kind in KINDS:
            workspace[kind] = self.snapshot(kind)
        return workspace

    def save(self, filepath):
        with open(filepath, 'w') as f:
            json.dump(self.to_workspace(), f, indent=4, default=_json_default)

    def load(self, filepath):
        with open(filepath, 'r') as f:
            workspace = json.load(f)
        self.replace(workspace)

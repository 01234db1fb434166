"""
Unit tests for the importers module.
"""

import pytest
from datetime import datetime
import sys
import os

import pandas as pd

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

pytest.importorskip("tkinter")

from importers import IMPORT_FIELDS, first_values, guess_mapping, read_frame, read_tasks, rows_to_tasks

MAPPING = {
    "Title": "Task",
    "Due Date": "Due",
    "Scheduled Start": "Start",
    "Duration": "Minutes",
    "Priority": "Priority",
    "Status": "Status",
    "Project": "Project",
}


class TestRowsToTasks:
    """Tests for converting rows into task documents."""

    def test_full_row(self):
        """Every mapped column lands in its task field."""
        df = pd.DataFrame([{
            "Task": " Write report ", "Due": "2025-03-12", "Start": "2025-03-10T09:00:00",
            "Minutes": 90, "Priority": "High", "Status": "In Progress", "Project": "p-site",
        }])
        task = rows_to_tasks(df, MAPPING)[0]
        assert task["title"] == "Write report"
        assert task["dueDate"] == datetime(2025, 3, 12)
        assert task["scheduledStart"] == datetime(2025, 3, 10, 9)
        assert task["estimatedMinutes"] == 90
        assert task["priority"] == "high"
        assert task["status"] == "in_progress"
        assert task["projectId"] == "p-site"

    def test_blank_cells_leave_fields_unset(self):
        """Empty and malformed cells fall back to defaults or are left out."""
        df = pd.DataFrame([
            {"Task": "Plan", "Due": None, "Start": "whenever", "Minutes": "lots"},
        ])
        task = rows_to_tasks(df, {"Title": "Task", "Due Date": "Due", "Scheduled Start": "Start",
                                  "Duration": "Minutes"})[0]
        assert "dueDate" not in task
        assert "scheduledStart" not in task
        assert task["estimatedMinutes"] == 30
        assert task["status"] == "pending"
        assert task["priority"] == "medium"

    def test_rows_without_title_skipped(self):
        """Rows with an empty title are dropped."""
        df = pd.DataFrame({"Task": ["Keep", None, "  "]})
        assert [t["title"] for t in rows_to_tasks(df, {"Title": "Task"})] == ["Keep"]

    def test_title_mapping_required(self):
        """A mapping without a title column is rejected."""
        with pytest.raises(ValueError):
            rows_to_tasks(pd.DataFrame({"Task": ["a"]}), {"Due Date": "Due"})

    def test_fields(self):
        """The title is the first, required field."""
        assert IMPORT_FIELDS[0] == "Title"


class TestGuessMapping:
    """Tests for column auto-detection."""

    def test_matches_field_words(self):
        """Columns containing every word of a field are picked, ignoring case and separators."""
        columns = ["task_title", "DUE-DATE", "Scheduled Start", "Duration (min)", "notes"]
        assert guess_mapping(columns) == {
            "Title": "task_title",
            "Due Date": "DUE-DATE",
            "Scheduled Start": "Scheduled Start",
            "Duration": "Duration (min)",
        }

    def test_column_used_once(self):
        """A column is never offered for two fields."""
        mapping = guess_mapping(["Project Title"], ["Title", "Project"])
        assert mapping == {"Title": "Project Title"}

    def test_first_values(self):
        """Previews skip empty cells and leave all-empty columns out."""
        df = pd.DataFrame({"Task": [None, "Write"], "Empty": [None, None]})
        assert first_values(df) == {"Task": "Write"}


class TestReadFiles:
    """Tests for reading files."""

    def test_read_csv(self, tmp_path):
        """CSV files are read and mapped."""
        path = tmp_path / "tasks.csv"
        path.write_text("Task,Due,Minutes\nWrite,2025-03-12,45\nReview,,\n")
        tasks = read_tasks(str(path), {"Title": "Task", "Due Date": "Due", "Duration": "Minutes"})
        assert [t["title"] for t in tasks] == ["Write", "Review"]
        assert tasks[0]["dueDate"] == datetime(2025, 3, 12)
        assert tasks[0]["estimatedMinutes"] == 45
        assert "dueDate" not in tasks[1]
        assert "estimatedMinutes" not in tasks[1]

    def test_unsupported_extension(self, tmp_path):
        """Only CSV and Excel files are accepted."""
        with pytest.raises(ValueError):
            read_frame(str(tmp_path / "tasks.txt"))

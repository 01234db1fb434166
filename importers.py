import pandas as pd
from tkinter import messagebox

from dialogs import ColumnMappingDialog
from models import Priority, parse_duration
from temporal import normalize

IMPORT_FIELDS = ["Title", "Due Date", "Scheduled Start", "Duration", "Priority", "Status", "Project"]


def read_frame(filepath):
    if filepath.endswith('.csv'):
        return pd.read_csv(filepath)
    if filepath.endswith('.xls') or filepath.endswith('.xlsx'):
        return pd.read_excel(filepath)
    raise ValueError("Please select a CSV or Excel file.")


def _words(text):
    return str(text).lower().replace("_", " ").replace("-", " ").split()


def guess_mapping(columns, fields=IMPORT_FIELDS):
    """Best-effort {field: column} for columns whose name contains the field's words."""
    mapping = {}
    for field in fields:
        wanted = _words(field)
        for column in columns:
            words = _words(column)
            if str(column) not in mapping.values() and all(w in words for w in wanted):
                mapping[field] = str(column)
                break
    return mapping


def first_values(df):
    """First non-empty value of each column, for previews."""
    samples = {}
    for column in df.columns:
        values = df[column].dropna()
        if not values.empty:
            samples[str(column)] = values.iloc[0]
    return samples


def _cell(row, mapping, field):
    column = mapping.get(field)
    if not column:
        return None
    value = row[column]
    if pd.isna(value):
        return None
    return value


def rows_to_tasks(df, mapping):
    """
    Converts a DataFrame into task documents using a {field: column} mapping.
    Rows without a title are skipped. Dates go through the normalizer, so
    empty or malformed cells simply leave the field unset.
    """
    if not mapping.get("Title"):
        raise ValueError("You must map a column to 'Title'.")

    tasks = []
    for _, row in df.iterrows():
        title = _cell(row, mapping, "Title")
        if title is None or not str(title).strip():
            continue

        task = {"title": str(title).strip(), "status": "pending", "priority": "medium"}

        for field, key in (("Due Date", "dueDate"), ("Scheduled Start", "scheduledStart")):
            instant = normalize(_cell(row, mapping, field))
            if instant is not None:
                task[key] = instant

        duration = _cell(row, mapping, "Duration")
        if duration is not None:
            task["estimatedMinutes"] = parse_duration(pd.to_numeric(duration, errors='coerce'))

        priority = _cell(row, mapping, "Priority")
        if priority is not None:
            task["priority"] = Priority.parse(str(priority)).label

        status = _cell(row, mapping, "Status")
        if status is not None:
            task["status"] = str(status).strip().lower().replace(" ", "_")

        project = _cell(row, mapping, "Project")
        if project is not None:
            task["projectId"] = str(project)

        tasks.append(task)
    return tasks


def read_tasks(filepath, mapping):
    return rows_to_tasks(read_frame(filepath), mapping)


def import_from_file(filepath, parent):
    """
    Imports tasks from a CSV or Excel file, asking the user to map columns.
    Returns a list of task documents, or None when cancelled or on error.
    """
    try:
        df = read_frame(filepath)
    except ValueError as e:
        messagebox.showerror("Unsupported File Type", str(e))
        return None
    except Exception as e:
        messagebox.showerror("Error Reading File", f"An error occurred while reading the file: {e}")
        return None

    dialog = ColumnMappingDialog(parent, "Map Columns", list(df.columns), IMPORT_FIELDS,
                                 guesses=guess_mapping(df.columns), samples=first_values(df))
    if not dialog.mapping:
        return None  # User cancelled

    try:
        return rows_to_tasks(df, dialog.mapping)
    except ValueError as e:
        messagebox.showerror("Mapping Error", str(e))
        return None
    except KeyError as e:
        messagebox.showerror("Mapping Error", f"The column '{e}' selected in the mapping does not exist in the file.")
        return None

import tkinter as tk
from tkinter import ttk, simpledialog, messagebox

from config import DEFAULT_DURATION_MINUTES, priority_colors
from temporal import format_time


class NewItemDialog(simpledialog.Dialog):
    """
    Dialog shown when an empty slot of the day grid is clicked.
    ``result`` holds the task fields to create, or None when cancelled.
    """
    def __init__(self, parent, title, day, hour, minute):
        self.day = day
        self.hour = hour
        self.minute = minute
        self.result = None
        super().__init__(parent, title)

    def body(self, master):
        main_frame = ttk.LabelFrame(master, text="New Task", padding=10)
        main_frame.pack(fill=tk.X, padx=10, pady=5)

        when = f"{self.day.strftime('%A %d %b')} at {format_time(self.hour, self.minute)}"
        ttk.Label(main_frame, text=when, font=("Arial", 9, "italic")).grid(
            row=0, column=0, columnspan=2, sticky="w", padx=5, pady=(0, 5))

        ttk.Label(main_frame, text="Title:").grid(row=1, column=0, sticky="w", padx=5, pady=2)
        self.title_var = tk.StringVar()
        title_entry = ttk.Entry(main_frame, textvariable=self.title_var, width=40)
        title_entry.grid(row=1, column=1, sticky="w", padx=5, pady=2)

        ttk.Label(main_frame, text="Duration (min):").grid(row=2, column=0, sticky="w", padx=5, pady=2)
        self.duration_var = tk.StringVar(value=str(DEFAULT_DURATION_MINUTES))
        ttk.Entry(main_frame, textvariable=self.duration_var, width=10).grid(
            row=2, column=1, sticky="w", padx=5, pady=2)

        ttk.Label(main_frame, text="Priority:").grid(row=3, column=0, sticky="w", padx=5, pady=2)
        self.priority_var = tk.StringVar(value="medium")
        ttk.Combobox(main_frame, textvariable=self.priority_var, values=list(priority_colors.keys()),
                     state="readonly", width=15).grid(row=3, column=1, sticky="w", padx=5, pady=2)

        return title_entry

    def validate(self):
        if not self.title_var.get().strip():
            messagebox.showerror("Title Required", "Please enter a title for the task.", parent=self)
            return False
        try:
            duration = int(self.duration_var.get())
        except ValueError:
            messagebox.showerror("Invalid Duration", "Duration must be a whole number of minutes.", parent=self)
            return False
        if duration < 0:
            messagebox.showerror("Invalid Duration", "Duration cannot be negative.", parent=self)
            return False
        return True

    def apply(self):
        self.result = {
            "title": self.title_var.get().strip(),
            "estimatedMinutes": int(self.duration_var.get()),
            "priority": self.priority_var.get(),
        }


class ColumnMappingDialog(simpledialog.Dialog):
    """
    Maps spreadsheet columns onto task fields before an import.
    ``mapping`` stays empty when the dialog is cancelled.
    """
    NOT_MAPPED = "(skip)"

    def __init__(self, parent, title, columns, fields, guesses=None, samples=None):
        self.columns = [str(c) for c in columns]
        self.fields = fields
        self.guesses = guesses or {}
        self.samples = samples or {}
        self.mapping = {}
        super().__init__(parent, title)

    def body(self, master):
        ttk.Label(master, text=f"Choose the column holding each task field. {self.fields[0]} is required.",
                  justify=tk.LEFT).grid(row=0, column=0, columnspan=3, sticky="w", padx=10, pady=(10, 5))

        table = ttk.LabelFrame(master, text="Fields", padding=10)
        table.grid(row=1, column=0, columnspan=3, sticky="ew", padx=10, pady=5)
        for col, heading in enumerate(("Field", "Column", "First value")):
            ttk.Label(table, text=heading, font=("Arial", 9, "bold")).grid(row=0, column=col, sticky="w", padx=5)

        self.choice_vars = {}
        self.sample_labels = {}
        choices = [self.NOT_MAPPED] + self.columns
        for row, field_name in enumerate(self.fields, start=1):
            ttk.Label(table, text=field_name).grid(row=row, column=0, sticky="w", padx=5, pady=2)

            var = tk.StringVar(value=self.guesses.get(field_name, self.NOT_MAPPED))
            combo = ttk.Combobox(table, textvariable=var, values=choices, state="readonly", width=28)
            combo.grid(row=row, column=1, sticky="w", padx=5, pady=2)
            combo.bind("<<ComboboxSelected>>", lambda e, f=field_name: self._show_sample(f))

            sample = ttk.Label(table, foreground="#64748b", width=24)
            sample.grid(row=row, column=2, sticky="w", padx=5)

            self.choice_vars[field_name] = var
            self.sample_labels[field_name] = sample
            self._show_sample(field_name)

        return table

    def _show_sample(self, field_name):
        column = self.choice_vars[field_name].get()
        self.sample_labels[field_name].config(text=str(self.samples.get(column, "")))

    def validate(self):
        required = self.fields[0]
        if self.choice_vars[required].get() == self.NOT_MAPPED:
            messagebox.showerror("Mapping Required", f"Pick the column that holds '{required}'.", parent=self)
            return False
        return True

    def apply(self):
        self.mapping = {f: v.get() for f, v in self.choice_vars.items() if v.get() != self.NOT_MAPPED}

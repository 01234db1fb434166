import copy
import json
import tkinter as tk
from datetime import timedelta
from tkinter import ttk, filedialog, messagebox

from matplotlib.figure import Figure
from matplotlib.backends.backend_tkagg import FigureCanvasTkAgg

# Local imports
import charts
from calendar_month import month_title
from config import VIEW_MODE_DAYS, default_workspace
from day_grid import block_at_offset, slot_at_offset
from dialogs import NewItemDialog
from importers import import_from_file
from log_config import get_logger
from planner import Planner
from reschedule import DragState, day_shift
from store import EntityStore

logger = get_logger(__name__)


class PlannerApp(tk.Tk):
    def __init__(self):
        super().__init__()
        self.title("Time Block Planner")
        self.geometry("1400x900")

        # --- App State ---
        self.store = EntityStore()
        self.planner = Planner(self.store, on_views=self.on_views)
        self.current_filepath = None

        # --- UI State ---
        self._day_patches = []
        self._timeline_patches = []
        self._timeline_drag = None
        self._hover_marker = None
        self.day_ax = None
        self.month_ax = None
        self.timeline_ax = None
        self.view_mode_var = tk.StringVar(value=self.planner.nav.view_mode)
        self.project_filter_var = tk.StringVar(value="All Projects")

        # --- Menu Bar ---
        self.create_menu()

        # --- Main Layout ---
        self.notebook = ttk.Notebook(self)
        self.notebook.pack(side=tk.TOP, fill=tk.BOTH, expand=True)

        self.month_canvas, self.month_figure = self._add_tab("Month", self.build_month_controls)
        self.day_canvas, self.day_figure = self._add_tab("Day", self.build_day_controls)
        self.timeline_canvas, self.timeline_figure = self._add_tab("Timeline", self.build_timeline_controls)

        # --- Initialization ---
        self.connect_events()
        self.planner.start()
        self.new_sample_workspace()

    def _add_tab(self, text, build_controls):
        frame = ttk.Frame(self.notebook)
        self.notebook.add(frame, text=text)

        control_frame = ttk.Frame(frame, padding="5")
        control_frame.pack(side=tk.TOP, fill=tk.X)
        build_controls(control_frame)

        figure = Figure(figsize=(14, 8), dpi=100)
        canvas = FigureCanvasTkAgg(figure, frame)
        canvas.get_tk_widget().pack(side=tk.TOP, fill=tk.BOTH, expand=True)
        return canvas, figure

    def connect_events(self):
        self.month_canvas.mpl_connect('button_press_event', self.on_month_press)
        self.day_canvas.mpl_connect('button_press_event', self.on_day_press)
        self.day_canvas.mpl_connect('motion_notify_event', self.on_day_motion)
        self.day_canvas.mpl_connect('button_release_event', self.on_day_release)
        self.timeline_canvas.mpl_connect('button_press_event', self.on_timeline_press)
        self.timeline_canvas.mpl_connect('button_release_event', self.on_timeline_release)

    def create_menu(self):
        menubar = tk.Menu(self)
        self.config(menu=menubar)

        file_menu = tk.Menu(menubar, tearoff=0)
        menubar.add_cascade(label="File", menu=file_menu)

        file_menu.add_command(label="New Sample Workspace", command=self.new_sample_workspace)
        file_menu.add_separator()
        file_menu.add_command(label="Open Workspace...", command=self.open_workspace)
        file_menu.add_command(label="Save Workspace As...", command=self.save_workspace_as)
        file_menu.add_command(label="Import Tasks...", command=self.import_tasks)
        file_menu.add_command(label="Export Chart...", command=self.export_chart)
        file_menu.add_separator()
        file_menu.add_command(label="Exit", command=self.quit)

    # --- Controls ---

    def build_month_controls(self, frame):
        ttk.Button(frame, text="< Prev", command=lambda: self.planner.shift_month(-1)).pack(side=tk.LEFT)
        ttk.Button(frame, text="Today", command=self.go_to_today).pack(side=tk.LEFT, padx=5)
        ttk.Button(frame, text="Next >", command=lambda: self.planner.shift_month(1)).pack(side=tk.LEFT)
        ttk.Label(frame, text="Click a day to open it in the Day tab.",
                  font=("Arial", 8, "italic")).pack(side=tk.LEFT, padx=10)

    def build_day_controls(self, frame):
        ttk.Button(frame, text="< Prev", command=lambda: self.shift_focus(-1)).pack(side=tk.LEFT)
        ttk.Button(frame, text="Today", command=self.go_to_today).pack(side=tk.LEFT, padx=5)
        ttk.Button(frame, text="Next >", command=lambda: self.shift_focus(1)).pack(side=tk.LEFT)
        ttk.Label(frame, text="Drag a block onto a slot to reschedule it. Click an empty slot to add a task.",
                  font=("Arial", 8, "italic")).pack(side=tk.LEFT, padx=10)

    def build_timeline_controls(self, frame):
        ttk.Button(frame, text="< Prev", command=lambda: self.planner.navigate_timeline('prev')).pack(side=tk.LEFT)
        ttk.Button(frame, text="Today", command=lambda: self.planner.navigate_timeline('today')).pack(
            side=tk.LEFT, padx=5)
        ttk.Button(frame, text="Next >", command=lambda: self.planner.navigate_timeline('next')).pack(side=tk.LEFT)

        ttk.Label(frame, text="View:").pack(side=tk.LEFT, padx=(15, 2))
        view_combo = ttk.Combobox(frame, textvariable=self.view_mode_var, values=list(VIEW_MODE_DAYS.keys()),
                                  state="readonly", width=10)
        view_combo.pack(side=tk.LEFT)
        view_combo.bind("<<ComboboxSelected>>", lambda e: self.planner.set_view_mode(self.view_mode_var.get()))

        ttk.Label(frame, text="Project:").pack(side=tk.LEFT, padx=(15, 2))
        self.project_combo = ttk.Combobox(frame, textvariable=self.project_filter_var, state="readonly", width=25)
        self.project_combo.pack(side=tk.LEFT)
        self.project_combo.bind("<<ComboboxSelected>>", self.on_project_filter_change)

        ttk.Button(frame, text="Expand All", command=self.expand_all).pack(side=tk.LEFT, padx=(15, 2))
        ttk.Button(frame, text="Collapse All", command=self.collapse_all).pack(side=tk.LEFT)

    # --- Navigation ---

    def go_to_today(self):
        self.planner.go_to_today()

    def shift_focus(self, days):
        self.planner.focus(self.planner.nav.focus_day + timedelta(days=days))

    def on_project_filter_change(self, event=None):
        title = self.project_filter_var.get()
        project_id = self._project_ids.get(title)
        self.planner.filter_project(project_id)

    def expand_all(self):
        self.planner.expand_all()
        self.draw_timeline()

    def collapse_all(self):
        self.planner.collapse_all()
        self.draw_timeline()

    # --- Drawing ---

    def on_views(self, views):
        self.draw_month()
        self.draw_day()
        self.draw_timeline()
        self.update_project_filter()

    def draw_month(self):
        views = self.planner.views
        self.month_ax = charts.draw_month(self.month_figure, views.month_cells,
                                          month_title(self.planner.nav.month_anchor))
        self.month_canvas.draw()

    def draw_day(self):
        views = self.planner.views
        self.day_ax, self._day_patches = charts.draw_day_grid(self.day_figure, views.day_grid, views.week)
        self._hover_marker = charts.hover_marker(self.day_ax, views.day_grid.slot_height_px)
        self.day_canvas.draw()

    def draw_timeline(self):
        views = self.planner.views
        # rows are recomputed by refresh() and by every toggle
        self.timeline_ax, self._timeline_patches = charts.draw_timeline(
            self.timeline_figure, views.columns, self.planner.rows, views.groups, views.goal_bars,
            views.capacity, gaps=views.gaps)
        self.timeline_canvas.draw()

    def update_project_filter(self):
        projects = self.store.snapshot("projects")
        self._project_ids = {p.get("title") or p.get("id"): p.get("id") for p in projects}
        self.project_combo["values"] = ["All Projects"] + list(self._project_ids.keys())

    # --- Month events ---

    def on_month_press(self, event):
        if event.inaxes != self.month_ax:
            return
        cell = charts.cell_at(self.planner.views.month_cells, event.xdata, event.ydata)
        if cell is None:
            return
        self.planner.focus(cell.date)
        self.notebook.select(1)

    # --- Day events ---

    def on_day_press(self, event):
        if event.inaxes != self.day_ax:
            return
        grid = self.planner.views.day_grid

        block = block_at_offset(event.ydata, grid.blocks)
        if block is not None:
            if block.item.kind == "habit":
                return
            if self.planner.coordinator.begin(block):
                self.day_canvas.get_tk_widget().config(cursor="hand2")
            return

        slot = slot_at_offset(event.ydata, grid.slots, grid.slot_height_px)
        if slot is None:
            return
        dialog = NewItemDialog(self, "New Task", grid.day, slot.hour, slot.minute)
        if dialog.result is None:
            return  # User cancelled
        try:
            self.planner.create_at_slot(slot.hour, slot.minute, dialog.result)
        except ValueError as e:
            messagebox.showerror("Create Task", str(e))

    def on_day_motion(self, event):
        coordinator = self.planner.coordinator
        if coordinator.state == DragState.IDLE:
            return
        slot = None
        if event.inaxes == self.day_ax:
            grid = self.planner.views.day_grid
            slot = slot_at_offset(event.ydata, grid.slots, grid.slot_height_px)
        coordinator.hover(slot)
        if self._hover_marker is not None:
            charts.move_hover(self._hover_marker, slot)
            self.day_canvas.draw_idle()

    def on_day_release(self, event):
        coordinator = self.planner.coordinator
        self.day_canvas.get_tk_widget().config(cursor="")
        if coordinator.state == DragState.IDLE:
            return
        dragged, hovering = coordinator.dragged, coordinator.state == DragState.HOVERING
        if event.inaxes != self.day_ax:
            coordinator.cancel()
            charts.move_hover(self._hover_marker, None)
            self.day_canvas.draw_idle()
            return
        new_start = self.planner.drop_on_focus_day()
        if new_start is None:
            charts.move_hover(self._hover_marker, None)
            self.day_canvas.draw_idle()
            if hovering:
                messagebox.showerror("Reschedule Failed",
                                     f"'{dragged.title}' could not be rescheduled. See the log for details.")

    # --- Timeline events ---

    def on_timeline_press(self, event):
        if event.inaxes != self.timeline_ax:
            return
        for patch, row in reversed(self._timeline_patches):
            contains, _ = patch.contains(event)
            if contains:
                self._timeline_drag = {"row": row, "x": event.x}
                self.timeline_canvas.get_tk_widget().config(cursor="sb_h_double_arrow")
                return

    def on_timeline_release(self, event):
        drag, self._timeline_drag = self._timeline_drag, None
        self.timeline_canvas.get_tk_widget().config(cursor="")
        if drag is None or event.x is None:
            return

        row = drag["row"]
        width_px = self.timeline_ax.bbox.width
        shift = day_shift(event.x - drag["x"], width_px, len(self.planner.views.columns))
        if shift == 0:
            # a plain click toggles the row
            if row.kind == "project":
                self.planner.toggle_project(row.id)
                self.draw_timeline()
            elif row.kind == "milestone":
                self.planner.toggle_milestone(row.id)
                self.draw_timeline()
            return

        if self.planner.shift_timeline_item(row.bar.item, shift) is None:
            messagebox.showerror("Reschedule Failed",
                                 f"'{row.title}' could not be moved. See the log for details.")

    # --- Files ---

    def update_window_title(self):
        if self.current_filepath:
            self.title(f"Time Block Planner - {self.current_filepath}")
        else:
            self.title("Time Block Planner")

    def new_sample_workspace(self):
        self.current_filepath = None
        workspace = copy.deepcopy(default_workspace)
        today = self.planner.nav.today
        # anchor the sample around today so every view has something in it
        for task, (offset, hour) in zip(workspace["tasks"], [(-3, None), (2, 10), (4, None), (0, 14)]):
            task["dueDate"] = (today + timedelta(days=offset)).isoformat()
            if hour is not None:
                task["scheduledStart"] = f"{today.isoformat()}T{hour:02d}:00:00"
        workspace["milestones"][0]["deadline"] = (today - timedelta(days=2)).isoformat()
        workspace["milestones"][1]["deadline"] = (today + timedelta(days=10)).isoformat()
        workspace["projects"][0]["startDate"] = (today - timedelta(days=10)).isoformat()
        self.store.replace(workspace)
        self.update_window_title()

    def open_workspace(self):
        filepath = filedialog.askopenfilename(
            filetypes=[("Planner Workspace Files", "*.planner"), ("JSON Files", "*.json"), ("All Files", "*.*")]
        )
        if not filepath:
            return
        try:
            self.store.load(filepath)
        except (OSError, json.JSONDecodeError) as e:
            logger.exception("Failed to open %s", filepath)
            messagebox.showerror("Open Workspace", f"Could not open the workspace: {e}")
            return
        self.current_filepath = filepath
        self.update_window_title()

    def save_workspace_as(self):
        filepath = filedialog.asksaveasfilename(
            defaultextension=".planner",
            filetypes=[("Planner Workspace Files", "*.planner"), ("All Files", "*.*")]
        )
        if not filepath:
            return
        try:
            self.store.save(filepath)
        except OSError as e:
            logger.exception("Failed to save %s", filepath)
            messagebox.showerror("Save Workspace", f"Could not save the workspace: {e}")
            return
        self.current_filepath = filepath
        self.update_window_title()

    def import_tasks(self):
        filepath = filedialog.askopenfilename(
            filetypes=[("CSV Files", "*.csv"), ("Excel Files", "*.xls *.xlsx"), ("All Files", "*.*")]
        )
        if not filepath:
            return
        tasks = import_from_file(filepath, self)
        if not tasks:
            return
        for task in tasks:
            self.store.create("tasks", task)
        logger.info("Imported %d tasks from %s", len(tasks), filepath)
        messagebox.showinfo("Import Tasks", f"Imported {len(tasks)} tasks.")

    def export_chart(self):
        figures = [self.month_figure, self.day_figure, self.timeline_figure]
        figure = figures[self.notebook.index(self.notebook.select())]

        filepath = filedialog.asksaveasfilename(
            title="Export Chart",
            defaultextension=".png",
            filetypes=[
                ("PNG Image", "*.png"),
                ("PDF Document", "*.pdf"),
                ("SVG Vector Image", "*.svg"),
                ("All Files", "*.*")
            ]
        )
        if not filepath:
            return

        try:
            charts.export_figure(figure, filepath)
            messagebox.showinfo("Export Successful", f"Chart successfully saved to\n{filepath}")
        except Exception as e:
            messagebox.showerror("Export Error", f"An error occurred while exporting the chart: {e}")


def main():
    app = PlannerApp()
    app.mainloop()


if __name__ == "__main__":
    main()

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import tkinter as tk
from tkinter import filedialog, messagebox, simpledialog, ttk

from mindmap.config import FONT, FRAME_INTERVAL_MS, INITIAL_OUTLINE, PAN_STEP, ZOOM_IN_STEP, ZOOM_OUT_STEP, Settings, load_settings
from mindmap.diagram import CAMERA_KEY, Diagram
from mindmap.editing import EditRequest, apply_edit, line_name
from mindmap.export import default_export_name, export_png
from mindmap.geometry import label_anchor, link_points, node_radius, wrap_label
from mindmap.interaction import ContextAction, InteractionController
from mindmap.logging import configure_logging, get_logger, log_exception
from mindmap.organizer import organize
from mindmap.palettes import COLOR_PALETTES, THEMES, Theme, get_palette, get_theme
from mindmap.reconcile import LinkMotion, NodeMotion, ScenePatch
from mindmap.view_state import Camera, Point

logger = get_logger(__name__)

DEFAULT_STATUS = (
    "Type an outline on the left (# Heading, ## Subheading, plain text). "
    "Click a node to fold it, drag to move it, right-click for actions."
)

ACTION_LABELS = {
    ContextAction.RENAME: "Rename",
    ContextAction.ADD_CHILD: "Add Child",
    ContextAction.TOGGLE_COLLAPSE: "Collapse / Expand",
    ContextAction.ADD_PIN: "Add Pin",
    ContextAction.REMOVE_PIN: "Remove Pin",
    ContextAction.DELETE: "Delete",
    ContextAction.ZOOM_IN: "Zoom In",
    ContextAction.ZOOM_OUT: "Zoom Out",
    ContextAction.RECENTER: "Center Map",
}

LinkGeometry = Tuple[float, float, float, float]


class CanvasRenderer:
    """Plays scene patches back on a tk canvas."""

    def __init__(self, canvas: tk.Canvas, diagram: Diagram) -> None:
        self.canvas = canvas
        self.diagram = diagram
        self.node_items: Dict[str, Dict[str, Any]] = {}
        self.link_items: Dict[str, int] = {}
        self.node_pos: Dict[str, Point] = {}
        self.link_pos: Dict[str, LinkGeometry] = {}
        self.node_style: Dict[str, NodeMotion] = {}
        self.link_style: Dict[str, LinkMotion] = {}

    @property
    def theme(self) -> Theme:
        return self.diagram.theme

    # ---------- Patch playback ----------
    def apply(self, patch: ScenePatch) -> None:
        nodes = patch.nodes
        for motion in nodes.enter + nodes.update + nodes.exit:
            self.node_style[motion.id] = motion
            self.node_pos.setdefault(motion.id, motion.start)
            if motion.id not in self.node_items:
                self._create_node(motion.id)
            self._restyle_node(motion.id)
        links = patch.links
        for motion in links.enter + links.update + links.exit:
            self.link_style[motion.id] = motion
            self.link_pos.setdefault(motion.id, motion.start[0] + motion.start[1])
            if motion.id not in self.link_items:
                self.link_items[motion.id] = self.canvas.create_line(
                    0, 0, 0, 0, smooth=True, splinesteps=24, tags=("mindmap-group", "link")
                )
            self.canvas.itemconfigure(self.link_items[motion.id], fill=motion.color, width=motion.width)
        self.canvas.tag_lower("link")

    def step(self) -> bool:
        """Advance one animation frame; True while anything is still moving."""
        for key, values in self.diagram.animator.tick().items():
            if key == CAMERA_KEY:
                continue
            kind, node_id = key
            if kind == "node":
                self.node_pos[node_id] = (values[0], values[1])
            else:
                self.link_pos[node_id] = (values[0], values[1], values[2], values[3])
        for kind, node_id in self.diagram.drain_retired():
            if kind == "node":
                self._delete_node(node_id)
            else:
                self._delete_link(node_id)
        self.redraw()
        return self.diagram.animator.busy

    def move_nodes(self, ids: List[str]) -> None:
        """Drag path: reposition only the given nodes and their incoming links."""
        frame = self.diagram.frame
        if frame is None:
            return
        camera = self.diagram.current_camera()
        for node_id in ids:
            node = frame.nodes[node_id]
            self.node_pos[node_id] = node.position
            self._draw_node(node_id, camera)
            if node.parent_id is not None and node_id in self.link_items:
                source = frame.nodes[node.parent_id]
                self.link_pos[node_id] = (source.x, source.y, node.x, node.y)
                self._draw_link(node_id, camera)

    def clear(self) -> None:
        self.canvas.delete("mindmap-group")
        self.node_items.clear()
        self.link_items.clear()
        self.node_pos.clear()
        self.link_pos.clear()
        self.node_style.clear()
        self.link_style.clear()

    # ---------- Items ----------
    def _create_node(self, node_id: str) -> None:
        shape = self.canvas.create_oval(0, 0, 0, 0, tags=("mindmap-group", "node"))
        label = self.canvas.create_text(0, 0, tags=("mindmap-group", "node-text"))
        self.node_items[node_id] = {"shape": shape, "text": label, "pin": None}

    def _restyle_node(self, node_id: str) -> None:
        items = self.node_items[node_id]
        style = self.node_style[node_id]
        if style.collapsed:
            self.canvas.itemconfigure(items["shape"], fill=self.theme.background, outline=style.color, width=3)
        else:
            self.canvas.itemconfigure(items["shape"], fill=style.color, outline=self.theme.background, width=2)
        size = 16 if style.depth == 0 else 14 if style.depth == 1 else 12
        _, anchor = label_anchor(style.has_children)
        self.canvas.itemconfigure(
            items["text"],
            text="\n".join(wrap_label(style.name)),
            fill=self.theme.text,
            font=(FONT[0], size, "bold"),
            anchor=anchor,
            justify=tk.RIGHT if anchor == "e" else tk.LEFT,
        )

    def refresh_pins(self) -> None:
        for node_id, items in self.node_items.items():
            pinned = self.diagram.pins.has_pin(node_id)
            if pinned and items["pin"] is None:
                items["pin"] = self.canvas.create_polygon(0, 0, 0, 0, 0, 0, fill=self.theme.pin, tags=("mindmap-group", "pin"))
            elif not pinned and items["pin"] is not None:
                self.canvas.delete(items["pin"])
                items["pin"] = None

    def _delete_node(self, node_id: str) -> None:
        items = self.node_items.pop(node_id, None)
        if items:
            for item in (items["shape"], items["text"], items["pin"]):
                if item is not None:
                    self.canvas.delete(item)
        self.node_pos.pop(node_id, None)
        self.node_style.pop(node_id, None)

    def _delete_link(self, node_id: str) -> None:
        item = self.link_items.pop(node_id, None)
        if item is not None:
            self.canvas.delete(item)
        self.link_pos.pop(node_id, None)
        self.link_style.pop(node_id, None)

    # ---------- Drawing ----------
    def redraw(self) -> None:
        camera = self.diagram.current_camera()
        for node_id in self.node_items:
            self._draw_node(node_id, camera)
        for node_id in self.link_items:
            self._draw_link(node_id, camera)

    def _draw_node(self, node_id: str, camera: Camera) -> None:
        items = self.node_items.get(node_id)
        style = self.node_style.get(node_id)
        if items is None or style is None:
            return
        x, y = camera.to_screen(*self.node_pos.get(node_id, style.end))
        r = node_radius(style.depth) * camera.scale
        self.canvas.coords(items["shape"], x - r, y - r, x + r, y + r)
        offset, _ = label_anchor(style.has_children)
        self.canvas.coords(items["text"], x + offset * camera.scale, y)
        if items["pin"] is not None:
            top = y - r - 4
            self.canvas.coords(items["pin"], x - 5, top - 10, x + 5, top - 10, x, top)

    def _draw_link(self, node_id: str, camera: Camera) -> None:
        item = self.link_items.get(node_id)
        geometry = self.link_pos.get(node_id)
        if item is None or geometry is None:
            return
        sx, sy, tx, ty = geometry
        points = link_points(camera.to_screen(sx, sy), camera.to_screen(tx, ty), steps=12)
        self.canvas.coords(item, *[coord for point in points for coord in point])


class MindMapApp:
    def __init__(self, root: tk.Tk, settings: Settings, path: Optional[Path] = None) -> None:
        self.root = root
        self.settings = settings
        self.current_path: Optional[Path] = path
        self.palette_key = tk.StringVar(value=get_palette(settings.palette).key)
        self.view_mode = tk.StringVar(value="split")
        self.theme_name = tk.StringVar(value=get_theme(settings.theme).name)

        self.diagram = Diagram(
            palette=get_palette(settings.palette).colors,
            theme=get_theme(settings.theme),
            viewport=(settings.window_width * 0.6, settings.window_height),
            transition_ms=settings.transition_ms,
        )
        self.controller = InteractionController(self.diagram, self._apply_edit_request, settings.drag_threshold)
        self._panning: Optional[Tuple[float, float]] = None
        self._pumping = False
        self._camera_framed = False

        self._build_ui()
        self.renderer = CanvasRenderer(self.canvas, self.diagram)
        self.diagram.add_listener(self._on_diagram_change)

        text = INITIAL_OUTLINE
        if path is not None:
            text = self._read_file(path) or ""
        self._replace_text(text)
        self._update_title()

    # ---------- UI ----------
    def _build_ui(self) -> None:
        menubar = tk.Menu(self.root)

        file_menu = tk.Menu(menubar, tearoff=False)
        file_menu.add_command(label="Open Outline...", command=self.open_file, accelerator="Ctrl+O")
        file_menu.add_command(label="Save Outline", command=self.save, accelerator="Ctrl+S")
        file_menu.add_separator()
        file_menu.add_command(label="Export PNG...", command=self.export_image)
        file_menu.add_separator()
        file_menu.add_command(label="Quit", command=self.root.destroy)
        menubar.add_cascade(label="File", menu=file_menu)

        organize_menu = tk.Menu(menubar, tearoff=False)
        organize_menu.add_command(label="Smart Clean", command=lambda: self.organize("smart"))
        organize_menu.add_command(label="Sort A-Z", command=lambda: self.organize("az"))
        organize_menu.add_command(label="Sort Z-A", command=lambda: self.organize("za"))
        organize_menu.add_separator()
        organize_menu.add_command(label="Reset Layout", command=self.reset_layout)
        menubar.add_cascade(label="Organize", menu=organize_menu)

        palette_menu = tk.Menu(menubar, tearoff=False)
        for key, palette in COLOR_PALETTES.items():
            palette_menu.add_radiobutton(
                label=palette.name,
                value=key,
                variable=self.palette_key,
                command=self._on_palette_change,
            )
        menubar.add_cascade(label="Palette", menu=palette_menu)

        self.pin_menu = tk.Menu(menubar, tearoff=False, postcommand=self._rebuild_pin_menu)
        menubar.add_cascade(label="Pins", menu=self.pin_menu)

        view_menu = tk.Menu(menubar, tearoff=False)
        for label, mode in (("Split", "split"), ("Editor Only", "editor"), ("Map Only", "map")):
            view_menu.add_radiobutton(label=label, value=mode, variable=self.view_mode, command=self._apply_view_mode)
        view_menu.add_separator()
        view_menu.add_command(label="Zoom In", command=lambda: self.diagram.zoom_by(ZOOM_IN_STEP), accelerator="Ctrl++")
        view_menu.add_command(label="Zoom Out", command=lambda: self.diagram.zoom_by(ZOOM_OUT_STEP), accelerator="Ctrl+-")
        view_menu.add_command(label="Center Map", command=self.diagram.recenter, accelerator="Ctrl+0")
        view_menu.add_separator()
        for name in THEMES:
            view_menu.add_radiobutton(
                label=f"{name.title()} Theme",
                value=name,
                variable=self.theme_name,
                command=self._on_theme_change,
            )
        menubar.add_cascade(label="View", menu=view_menu)

        self.root.config(menu=menubar)
        self.root.bind("<Control-o>", lambda _: self.open_file())
        self.root.bind("<Control-s>", lambda _: self.save())
        self.root.bind("<Control-plus>", lambda _: self.diagram.zoom_by(ZOOM_IN_STEP))
        self.root.bind("<Control-equal>", lambda _: self.diagram.zoom_by(ZOOM_IN_STEP))
        self.root.bind("<Control-minus>", lambda _: self.diagram.zoom_by(ZOOM_OUT_STEP))
        self.root.bind("<Control-0>", lambda _: self.diagram.recenter())

        self.paned = ttk.PanedWindow(self.root, orient=tk.HORIZONTAL)
        self.paned.pack(fill=tk.BOTH, expand=True)

        theme = self.diagram.theme
        self.editor_frame = tk.Frame(self.paned)
        self.editor = tk.Text(
            self.editor_frame,
            wrap="none",
            undo=True,
            font=("Consolas", 11),
            bg=theme.background,
            fg=theme.text,
            insertbackground=theme.text,
        )
        self.editor.pack(fill=tk.BOTH, expand=True)
        self.editor.bind("<<Modified>>", self._on_text_modified)

        self.map_frame = tk.Frame(self.paned, bg=theme.background)
        self.canvas = tk.Canvas(self.map_frame, bg=theme.background, highlightthickness=0)
        self.canvas.pack(fill=tk.BOTH, expand=True)
        self._bind_canvas(self.canvas)
        self._apply_view_mode()

        self.status_var = tk.StringVar(value=DEFAULT_STATUS)
        self.status_label = tk.Label(self.root, textvariable=self.status_var, anchor="w", bg="white")
        self.status_label.pack(fill=tk.X, side=tk.BOTTOM)

    def _bind_canvas(self, canvas: tk.Canvas) -> None:
        canvas.bind("<Button-1>", self.on_click)
        canvas.bind("<B1-Motion>", self.on_drag)
        canvas.bind("<ButtonRelease-1>", self.on_release)
        canvas.bind("<Button-3>", self.on_context)
        canvas.bind("<Control-MouseWheel>", self._on_ctrl_wheel)
        canvas.bind("<MouseWheel>", self._on_wheel_scroll)
        canvas.bind("<Configure>", self._on_canvas_resize)

    def _apply_view_mode(self) -> None:
        for pane in self.paned.panes():
            self.paned.forget(pane)
        mode = self.view_mode.get()
        if mode in ("split", "editor"):
            self.paned.add(self.editor_frame, weight=2)
        if mode in ("split", "map"):
            self.paned.add(self.map_frame, weight=3)

    def _set_status(self, message: str) -> None:
        self.status_var.set(message)

    def _update_title(self) -> None:
        name = self.current_path.name if self.current_path else "Untitled"
        root_name = self.diagram.frame.root.name if self.diagram.frame else "None"
        self.root.title(f"Mind Map - {name} - Root: {root_name}")

    # ---------- Text ----------
    def _on_text_modified(self, _event: tk.Event) -> None:
        if not self.editor.edit_modified():
            return
        self.editor.edit_modified(False)
        text = self.editor.get("1.0", "end-1c")
        if text == self.diagram.text:
            return
        self.diagram.set_text(text)
        lines = text.count("\n") + 1 if text else 0
        self._set_status(f"{lines} lines : {len(text)} chars")
        self._update_title()

    def _replace_text(self, text: str) -> None:
        self.editor.delete("1.0", tk.END)
        self.editor.insert("1.0", text)
        # <<Modified>> fires asynchronously; sync the diagram now
        if text != self.diagram.text:
            self.diagram.set_text(text)
        self.editor.edit_modified(False)
        self._update_title()

    def _apply_edit_request(self, request: EditRequest) -> None:
        self._replace_text(apply_edit(self.diagram.text, request))

    def organize(self, mode: str) -> None:
        self._replace_text(organize(self.diagram.text, mode))
        self._set_status({"smart": "Outline cleaned.", "az": "Sorted A-Z.", "za": "Sorted Z-A."}[mode])

    def reset_layout(self) -> None:
        self.diagram.reset_layout()
        self._set_status("Layout reset.")

    def _on_palette_change(self) -> None:
        self.diagram.set_palette(get_palette(self.palette_key.get()).colors)

    def _on_theme_change(self) -> None:
        theme = get_theme(self.theme_name.get())
        self.canvas.config(bg=theme.background)
        self.map_frame.config(bg=theme.background)
        self.editor.config(bg=theme.background, fg=theme.text, insertbackground=theme.text)
        self.diagram.set_theme(theme)

    # ---------- Rendering ----------
    def _on_diagram_change(self, patch: Optional[ScenePatch]) -> None:
        if patch is not None:
            self.renderer.apply(patch)
        self.renderer.refresh_pins()
        self.renderer.redraw()
        self._ensure_pump()

    def _ensure_pump(self) -> None:
        if not self._pumping and self.diagram.animator.busy:
            self._pumping = True
            self.root.after(FRAME_INTERVAL_MS, self._pump)

    def _pump(self) -> None:
        if self.renderer.step():
            self.root.after(FRAME_INTERVAL_MS, self._pump)
        else:
            self._pumping = False

    def _on_canvas_resize(self, event: tk.Event) -> None:
        self.diagram.resize(event.width, event.height)
        if not self._camera_framed:
            self._camera_framed = True
            self.diagram.recenter()

    # ---------- Event handlers ----------
    def on_click(self, event: tk.Event) -> None:
        node = self.diagram.node_at(event.x, event.y)
        if node is None:
            self._panning = (event.x, event.y)
            self.canvas.config(cursor="fleur")
            return
        self.controller.pointer_down(node.id, event.x, event.y)

    def on_drag(self, event: tk.Event) -> None:
        if self._panning is not None:
            last_x, last_y = self._panning
            self._panning = (event.x, event.y)
            self.diagram.pan_by(event.x - last_x, event.y - last_y)
            return
        moved = self.controller.pointer_move(event.x, event.y)
        if moved:
            self.renderer.move_nodes(moved)

    def on_release(self, event: tk.Event) -> None:
        if self._panning is not None:
            self._panning = None
            self.canvas.config(cursor="")
            return
        self.controller.pointer_up(event.x, event.y)

    def on_context(self, event: tk.Event) -> None:
        node = self.diagram.node_at(event.x, event.y)
        node_id = node.id if node is not None else None
        menu = tk.Menu(self.root, tearoff=False)
        actions = self.controller.context_actions(node_id)
        for action in actions:
            if action is ContextAction.ZOOM_IN and node_id is not None:
                menu.add_separator()
            menu.add_command(label=ACTION_LABELS[action], command=lambda a=action: self._run_action(a, node_id))
        try:
            menu.tk_popup(event.x_root, event.y_root)
        finally:
            menu.grab_release()

    def _run_action(self, action: ContextAction, node_id: Optional[str]) -> None:
        frame = self.diagram.frame
        node = frame.get(node_id) if frame is not None and node_id else None
        value: Optional[str] = None
        if action is ContextAction.RENAME and node is not None:
            value = simpledialog.askstring(
                "Rename", "New name:", initialvalue=line_name(self.diagram.text, node.line_index), parent=self.root
            )
            if not value:
                return
        elif action is ContextAction.ADD_CHILD:
            value = simpledialog.askstring("Add Child", "Child name:", parent=self.root)
            if not value:
                return
        elif action is ContextAction.ADD_PIN and node is not None:
            value = simpledialog.askstring("Add Pin", "Pin label:", initialvalue=node.name, parent=self.root)
            if value is None:
                return
        elif action is ContextAction.DELETE and node is not None:
            count = len(frame.subtree(node.id, visible_only=False))
            if count > 1 and not messagebox.askyesno("Delete", f"Delete this node and its {count - 1} descendant(s)?"):
                return
        self.controller.activate(action, node_id, value)

    def _on_ctrl_wheel(self, event: tk.Event) -> None:
        factor = ZOOM_IN_STEP if event.delta > 0 else ZOOM_OUT_STEP
        self.diagram.zoom_by(factor, origin=(event.x, event.y))

    def _on_wheel_scroll(self, event: tk.Event) -> None:
        self.diagram.pan_by(0, (event.delta // 120) * PAN_STEP)

    # ---------- Pins ----------
    def _rebuild_pin_menu(self) -> None:
        self.pin_menu.delete(0, tk.END)
        pins = self.diagram.list_pins()
        if not pins:
            self.pin_menu.add_command(label="No pins yet", state=tk.DISABLED)
            return
        for pin in pins:
            self.pin_menu.add_command(label=f"Go to: {pin.label}", command=lambda p=pin: self._navigate(p))
        self.pin_menu.add_separator()
        remove_menu = tk.Menu(self.pin_menu, tearoff=False)
        for pin in pins:
            remove_menu.add_command(label=pin.label, command=lambda p=pin: self.diagram.remove_pin(p.node_id))
        self.pin_menu.add_cascade(label="Remove", menu=remove_menu)

    def _navigate(self, pin) -> None:
        if not self.controller.navigate_to_pin(pin):
            self._set_status(f"Pin '{pin.label}' points at a node that no longer exists.")

    # ---------- Files ----------
    def _read_file(self, path: Path) -> Optional[str]:
        try:
            return Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            log_exception(logger, "Load failed", path=str(path))
            messagebox.showerror("Load failed", str(exc))
            return None

    def open_file(self) -> None:
        path = filedialog.askopenfilename(
            filetypes=[("Markdown", "*.md"), ("Text", "*.txt"), ("All files", "*.*")],
            title="Open Outline",
        )
        if not path:
            return
        text = self._read_file(Path(path))
        if text is None:
            return
        self.current_path = Path(path)
        self._replace_text(text)
        self._set_status(f"Loaded {path}.")

    def save(self) -> None:
        path = self.current_path
        if path is None:
            chosen = filedialog.asksaveasfilename(
                defaultextension=".md",
                filetypes=[("Markdown", "*.md")],
                title="Save Outline",
                initialfile="mindmap.md",
            )
            if not chosen:
                return
            path = Path(chosen)
        try:
            path.write_text(self.diagram.text, encoding="utf-8")
        except OSError as exc:
            log_exception(logger, "Save failed", path=str(path))
            messagebox.showerror("Save failed", str(exc))
            return
        self.current_path = path
        self._update_title()
        self._set_status(f"Saved to {path}.")

    def export_image(self) -> None:
        path = filedialog.asksaveasfilename(
            defaultextension=".png",
            filetypes=[("PNG", "*.png")],
            title="Export PNG",
            initialdir=str(self.settings.export_dir),
            initialfile=default_export_name(),
        )
        if not path:
            return
        written = export_png(self.diagram.frame, self.diagram.theme, Path(path), self.diagram.pins)
        if written is None:
            messagebox.showinfo("Export", "Nothing to export.")
            self._set_status("Nothing to export.")
            return
        self._set_status(f"Exported to {written}.")


def run(path: Optional[Path] = None) -> None:
    settings = load_settings()
    configure_logging(settings.log_level)
    root = tk.Tk()
    root.geometry(f"{settings.window_width}x{settings.window_height}")
    root.minsize(900, 600)
    MindMapApp(root, settings, path)
    root.mainloop()

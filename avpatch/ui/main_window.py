from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from PySide6.QtCore import Qt, Slot
from PySide6.QtGui import QAction, QActionGroup, QColor, QKeySequence, QPalette
from PySide6.QtWidgets import (
    QApplication,
    QFileDialog,
    QHBoxLayout,
    QMainWindow,
    QMenu,
    QMessageBox,
    QSplitter,
    QWidget,
)

from avpatch.config import APP_NAME, default_diagram_path
from avpatch.nodes import Catalog, NodeGraph, get_catalog
from avpatch.storage import (
    DiagramExample,
    DiagramFormatError,
    DiagramStore,
    RecentDiagrams,
    get_examples,
)

from .catalog_panel import CatalogPanel
from .node_editor import NodeEditorView
from .node_inspector import NodeInspector


logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    """
    Top-level window for the AV Patch application.
    """

    def __init__(
        self,
        catalog: Optional[Catalog] = None,
        diagram_store: Optional[DiagramStore] = None,
        recent: Optional[RecentDiagrams] = None,
        default_path: Optional[Path] = None,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self.setMinimumSize(1024, 720)

        app = QApplication.instance()
        self._default_palette: Optional[QPalette] = QPalette(app.palette()) if app else None
        self._default_style: Optional[str] = app.style().objectName() if app else None

        self._catalog = catalog or get_catalog()
        self._graph = NodeGraph()
        self._diagram_store = diagram_store or DiagramStore()
        self._recent = recent or RecentDiagrams()
        self._catalog_panel = CatalogPanel(self._catalog)
        self._node_editor = NodeEditorView(self._graph, self._catalog)
        self._node_inspector = NodeInspector(self._graph)
        self._node_inspector.setMinimumWidth(260)
        self._diagram_path: Optional[Path] = None
        self._diagram_name: str = DiagramStore.DEFAULT_NAME
        self._last_diagram_dir: Path = Path.home()
        self._default_diagram_path: Path = default_path or default_diagram_path()
        self._status_bar = self.statusBar()
        self._status_bar.showMessage("Ready")

        self._theme: str = "light"
        self._theme_actions: Dict[str, QAction] = {}
        self._recent_menu: Optional[QMenu] = None

        self._diagram_dirty = False

        self._setup_ui()
        self._setup_menus()
        self._load_initial_diagram()

    @property
    def graph(self) -> NodeGraph:
        return self._graph

    @property
    def diagram_path(self) -> Optional[Path]:
        return self._diagram_path

    @property
    def is_dirty(self) -> bool:
        return self._diagram_dirty

    def _setup_ui(self) -> None:
        container = QWidget(self)
        layout = QHBoxLayout(container)
        layout.setContentsMargins(0, 0, 0, 0)

        splitter = QSplitter(Qt.Horizontal, container)
        splitter.addWidget(self._catalog_panel)
        splitter.addWidget(self._node_editor)
        splitter.addWidget(self._node_inspector)
        splitter.setCollapsible(0, False)
        splitter.setCollapsible(1, False)
        splitter.setCollapsible(2, False)
        splitter.setStretchFactor(0, 0)
        splitter.setStretchFactor(1, 2)
        splitter.setStretchFactor(2, 1)
        splitter.setSizes([260, 920, 320])

        layout.addWidget(splitter)
        self.setCentralWidget(container)

        self._catalog_panel.templateActivated.connect(self._add_node)
        self._node_editor.selectionChanged.connect(self._node_inspector.set_nodes)
        self._node_editor.graphChanged.connect(self._mark_diagram_dirty)
        self._node_editor.connectionRejected.connect(self._show_rejection)
        self._node_inspector.configChanged.connect(self._on_node_config_changed)
        self._node_inspector.conflictRaised.connect(self._show_rejection)

    def _setup_menus(self) -> None:
        file_menu = self.menuBar().addMenu("&File")

        new_action = QAction("&New Diagram", self)
        new_action.setShortcut(QKeySequence.New)
        new_action.triggered.connect(self._new_diagram)  # type: ignore[arg-type]
        file_menu.addAction(new_action)

        open_action = QAction("&Open Diagram…", self)
        open_action.setShortcut(QKeySequence.Open)
        open_action.triggered.connect(self._open_diagram)  # type: ignore[arg-type]
        file_menu.addAction(open_action)

        self._recent_menu = file_menu.addMenu("Open &Recent")
        self._rebuild_recent_menu()

        save_action = QAction("&Save Diagram", self)
        save_action.setShortcut(QKeySequence.Save)
        save_action.triggered.connect(self._save_diagram)  # type: ignore[arg-type]
        file_menu.addAction(save_action)

        save_as_action = QAction("Save Diagram &As…", self)
        save_as_action.setShortcut(QKeySequence.SaveAs)
        save_as_action.triggered.connect(self._save_diagram_as)  # type: ignore[arg-type]
        file_menu.addAction(save_as_action)

        examples_menu = file_menu.addMenu("Load &Example")
        for example in get_examples():
            action = examples_menu.addAction(example.name)
            action.setToolTip(example.description)
            action.triggered.connect(
                lambda _checked=False, example=example: self._load_example(example)
            )

        file_menu.addSeparator()

        quit_action = QAction("&Quit", self)
        quit_action.setShortcut(QKeySequence.Quit)
        quit_action.triggered.connect(self.close)  # type: ignore[arg-type]
        file_menu.addAction(quit_action)

        equipment_menu = self.menuBar().addMenu("&Equipment")
        for template in self._node_editor.templates:
            action = equipment_menu.addAction(template.name)
            action.triggered.connect(
                lambda _checked=False, template_id=template.id: self._add_node(template_id)
            )
            action.setStatusTip(template.description)
        equipment_menu.addSeparator()
        delete_action = equipment_menu.addAction("Delete Selected")
        delete_action.triggered.connect(self._delete_selected)  # type: ignore[arg-type]

        view_menu = self.menuBar().addMenu("&View")
        theme_menu = view_menu.addMenu("&Theme")
        theme_group = QActionGroup(self)
        theme_group.setExclusive(True)
        for theme_key, label in (("light", "Light"), ("dark", "Dark")):
            action = theme_menu.addAction(label)
            action.setCheckable(True)
            theme_group.addAction(action)
            action.triggered.connect(
                lambda checked, theme=theme_key: self._on_theme_action(theme, checked)
            )
            self._theme_actions[theme_key] = action
        self._update_theme_actions()

        help_menu = self.menuBar().addMenu("&Help")
        about_action = QAction("&About", self)
        about_action.triggered.connect(self._show_about_dialog)  # type: ignore[arg-type]
        help_menu.addAction(about_action)

        quickstart_action = QAction("Quick &Start", self)
        quickstart_action.triggered.connect(self._show_quick_start)  # type: ignore[arg-type]
        help_menu.addAction(quickstart_action)

    def _new_diagram(self) -> None:
        self._graph.clear()
        self._diagram_path = None
        self._diagram_name = DiagramStore.DEFAULT_NAME
        self._diagram_dirty = False
        self._reload_graph()
        self._status_bar.showMessage("New diagram.", 3000)

    def _open_diagram(self) -> None:
        file_name, _ = QFileDialog.getOpenFileName(
            self,
            "Open Diagram",
            str(self._last_diagram_dir),
            "Diagram Files (*.json)",
        )
        if file_name:
            self.open_path(Path(file_name))

    def open_path(self, path: Path) -> bool:
        try:
            payload = self._diagram_store.load(path)
        except (OSError, DiagramFormatError) as exc:
            QMessageBox.critical(self, "Failed to Open Diagram", str(exc))
            return False

        info = self._diagram_store.import_graph(self._graph, payload)
        self._diagram_path = path
        self._last_diagram_dir = path.parent
        self._diagram_dirty = False
        self._apply_import_info(info)
        self._recent.push(self._diagram_name, path)
        self._rebuild_recent_menu()
        self._status_bar.showMessage(self._loaded_message(path.name, info), 5000)
        return True

    def _open_recent(self, path: Path) -> None:
        if not path.exists():
            QMessageBox.warning(self, "Open Recent", f"{path} no longer exists.")
            self._recent.remove(path)
            self._rebuild_recent_menu()
            return
        self.open_path(path)

    def _clear_recent(self) -> None:
        self._recent.clear()
        self._rebuild_recent_menu()

    def _rebuild_recent_menu(self) -> None:
        if self._recent_menu is None:
            return
        self._recent_menu.clear()
        entries = self._recent.entries()
        if not entries:
            placeholder = self._recent_menu.addAction("No recent diagrams")
            placeholder.setEnabled(False)
            return
        for entry in entries:
            action = self._recent_menu.addAction(entry.name)
            action.setStatusTip(entry.path)
            action.triggered.connect(
                lambda _checked=False, path=entry.path: self._open_recent(Path(path))
            )
        self._recent_menu.addSeparator()
        clear_action = self._recent_menu.addAction("Clear List")
        clear_action.triggered.connect(self._clear_recent)  # type: ignore[arg-type]

    def _save_diagram(self) -> None:
        if self._diagram_path is None:
            self._save_diagram_as()
            return
        if self._save_to_path(self._diagram_path, update_diagram_path=True):
            self._diagram_dirty = False

    def _save_diagram_as(self) -> None:
        file_name, _ = QFileDialog.getSaveFileName(
            self,
            "Save Diagram As",
            str(self._last_diagram_dir / "diagram.json"),
            "Diagram Files (*.json)",
        )
        if not file_name:
            return

        path = Path(file_name)
        if path.suffix.lower() != ".json":
            path = path.with_suffix(".json")

        if self._save_to_path(path, update_diagram_path=True):
            self._diagram_dirty = False

    def _show_about_dialog(self) -> None:
        QMessageBox.information(
            self,
            f"About {APP_NAME}",
            (
                f"{APP_NAME}\n\n"
                "Plan how your consoles, switchers, upscalers and displays are cabled "
                "and check that every connection carries a compatible signal."
            ),
        )

    def _on_theme_action(self, theme: str, checked: bool) -> None:
        if not checked:
            return
        self._set_theme(theme)

    def _set_theme(self, theme: str) -> None:
        if theme == self._theme:
            return
        self._theme = theme
        self._apply_theme(theme)
        self._update_theme_actions()
        self._status_bar.showMessage(f"{theme.capitalize()} theme applied.", 4000)

    def _update_theme_actions(self) -> None:
        for theme_key, action in self._theme_actions.items():
            action.setChecked(theme_key == self._theme)

    def _apply_theme(self, theme: str) -> None:
        app = QApplication.instance()
        if app is None:
            return

        if theme == "dark":
            app.setStyle("Fusion")
            app.setPalette(self._build_dark_palette())
        else:
            if self._default_style:
                app.setStyle(self._default_style)
            if self._default_palette is not None:
                app.setPalette(self._default_palette)
            else:
                app.setPalette(app.style().standardPalette())

    def _build_dark_palette(self) -> QPalette:
        palette = QPalette()
        base_color = QColor(30, 32, 38)
        alt_base_color = QColor(40, 43, 51)
        text_color = QColor(222, 226, 232)
        disabled_text = QColor(128, 128, 128)
        highlight_color = QColor(86, 156, 214)

        palette.setColor(QPalette.Window, alt_base_color)
        palette.setColor(QPalette.WindowText, text_color)
        palette.setColor(QPalette.Base, base_color)
        palette.setColor(QPalette.AlternateBase, alt_base_color)
        palette.setColor(QPalette.ToolTipBase, alt_base_color)
        palette.setColor(QPalette.ToolTipText, text_color)
        palette.setColor(QPalette.Text, text_color)
        palette.setColor(QPalette.Button, alt_base_color)
        palette.setColor(QPalette.ButtonText, text_color)
        palette.setColor(QPalette.Highlight, highlight_color)
        palette.setColor(QPalette.HighlightedText, QColor(255, 255, 255))
        palette.setColor(QPalette.PlaceholderText, QColor(170, 170, 170))

        palette.setColor(QPalette.Disabled, QPalette.Text, disabled_text)
        palette.setColor(QPalette.Disabled, QPalette.ButtonText, disabled_text)
        palette.setColor(QPalette.Disabled, QPalette.WindowText, disabled_text)

        return palette

    def _show_quick_start(self) -> None:
        QMessageBox.information(
            self,
            f"{APP_NAME} Quick Start",
            (
                "1. Drag equipment from the sidebar onto the canvas, or right-click the canvas.\n"
                "2. Drag from an output port to an input port to run a cable.\n"
                "3. Pick a console's output and configure switches in the inspector.\n"
                "4. Red dashed cables carry a signal the input cannot accept."
            ),
        )

    def closeEvent(self, event) -> None:  # type: ignore[override]
        self._auto_save_diagram()
        super().closeEvent(event)

    @Slot(str)
    def _show_rejection(self, reason: str) -> None:
        self._status_bar.showMessage(reason, 6000)

    @Slot(str)
    def _on_node_config_changed(self, node_id: str) -> None:
        _ = node_id
        self._node_editor.refresh()
        self._mark_diagram_dirty()

    @Slot(str)
    def _add_node(self, template_id: str) -> None:
        node = self._node_editor.add_node(template_id)
        if node is not None:
            self._status_bar.showMessage(f"Added {node.title}.", 3000)

    def _delete_selected(self) -> None:
        self._node_editor.delete_selected_items()

    def _reload_graph(self) -> None:
        self._node_editor.reload()
        self._node_inspector.set_nodes([])
        self._update_window_title()

    def _load_example(self, example: DiagramExample) -> None:
        info = self._diagram_store.import_graph(self._graph, example.payload)
        self._diagram_path = None
        self._diagram_dirty = True
        self._apply_import_info(info)
        self._status_bar.showMessage(f"Example loaded: {example.name}", 4000)

    def _load_initial_diagram(self) -> None:
        path = self._default_diagram_path
        if not path.exists():
            self._graph.clear()
            self._diagram_path = None
            self._diagram_dirty = False
            self._reload_graph()
            return

        try:
            payload = self._diagram_store.load(path)
        except (OSError, DiagramFormatError) as exc:
            logger.warning("Failed to load diagram '%s': %s", path, exc)
            self._graph.clear()
            self._diagram_path = None
            self._diagram_dirty = False
            self._reload_graph()
            return

        info = self._diagram_store.import_graph(self._graph, payload)
        self._diagram_path = None
        self._diagram_dirty = False
        self._apply_import_info(info)

    def _apply_import_info(self, info: Mapping[str, Any]) -> None:
        self._diagram_name = str(info.get("name") or DiagramStore.DEFAULT_NAME)
        self._reload_graph()
        self._node_editor.restore_viewport(info.get("viewport"))

    @staticmethod
    def _loaded_message(label: str, info: Mapping[str, Any]) -> str:
        dropped = info.get("dropped") or []
        if dropped:
            return f"Diagram loaded: {label} ({len(dropped)} invalid connection(s) removed)"
        return f"Diagram loaded: {label}"

    def _save_to_path(
        self,
        path: Path,
        *,
        update_diagram_path: bool,
        show_message: bool = True,
    ) -> bool:
        name = path.stem if update_diagram_path else self._diagram_name
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            self._diagram_store.save_graph(
                path,
                self._graph,
                name=name,
                viewport=self._node_editor.viewport_state(),
            )
        except OSError as exc:
            if show_message:
                QMessageBox.critical(self, "Failed to Save Diagram", str(exc))
            else:
                logger.exception("Auto-save failed: %s", exc)
            return False

        if update_diagram_path:
            self._diagram_path = path
            self._diagram_name = name
            self._last_diagram_dir = path.parent
            self._recent.push(name, path)
            self._rebuild_recent_menu()
            self._update_window_title()

        if show_message:
            self._status_bar.showMessage(f"Diagram saved: {path.name}", 4000)

        return True

    def _auto_save_diagram(self) -> None:
        if self._save_to_path(
            self._default_diagram_path, update_diagram_path=False, show_message=False
        ):
            self._diagram_dirty = False

    def _mark_diagram_dirty(self) -> None:
        self._diagram_dirty = True
        self._update_window_title()

    def _update_window_title(self) -> None:
        marker = "*" if self._diagram_dirty else ""
        self.setWindowTitle(f"{self._diagram_name}{marker} - {APP_NAME}")

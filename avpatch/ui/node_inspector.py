from __future__ import annotations

import logging
from typing import List, Optional

from PySide6.QtCore import Signal
from PySide6.QtWidgets import (
    QComboBox,
    QFormLayout,
    QFrame,
    QGroupBox,
    QLabel,
    QLineEdit,
    QScrollArea,
    QSizePolicy,
    QSpinBox,
    QVBoxLayout,
    QWidget,
)

from avpatch.nodes import Node, NodeGraph, get_ports, normalize_svs_config
from avpatch.nodes.ports import available_outputs, console_output, input_ceiling, output_ceiling
from avpatch.nodes.signals import KNOWN_SIGNALS

logger = logging.getLogger(__name__)


class NodeInspector(QGroupBox):
    """
    Inspector panel that exposes configuration for the selected node.

    Consoles get an output selector, scalable video switches get port count
    and per-port signal editors. Every change goes through the graph so
    affected connections are re-checked.
    """

    configChanged = Signal(str)  # node_id
    conflictRaised = Signal(str)  # message

    def __init__(self, graph: NodeGraph, parent: Optional[QWidget] = None) -> None:
        super().__init__("Inspector", parent)
        self._graph = graph
        self._current_nodes: List[Node] = []
        self._is_updating = False

        self.setSizePolicy(QSizePolicy.Preferred, QSizePolicy.Expanding)

        self._scroll_area = QScrollArea(self)
        self._scroll_area.setWidgetResizable(True)
        self._scroll_area.setFrameShape(QFrame.NoFrame)

        self._content_widget = QWidget(self._scroll_area)
        self._content_layout = QVBoxLayout()
        self._content_layout.setContentsMargins(0, 0, 0, 0)
        self._content_widget.setLayout(self._content_layout)
        self._scroll_area.setWidget(self._content_widget)

        root_layout = QVBoxLayout()
        root_layout.setContentsMargins(8, 8, 8, 8)
        root_layout.addWidget(self._scroll_area)
        self.setLayout(root_layout)

        self._title_edit: Optional[QLineEdit] = None
        self._output_combo: Optional[QComboBox] = None
        self._status_label: Optional[QLabel] = None

        self.refresh()

    def set_graph(self, graph: NodeGraph) -> None:
        self._graph = graph
        self._current_nodes = []
        self.refresh()

    def set_nodes(self, nodes: List[Node]) -> None:
        self._current_nodes = nodes
        self.refresh()

    def refresh(self) -> None:
        self._clear_content()

        if not self._current_nodes:
            self._content_layout.addWidget(QLabel("Select a piece of equipment to edit it."))
            self._content_layout.addStretch()
            return

        if len(self._current_nodes) > 1:
            self._content_layout.addWidget(QLabel("Multiple items selected."))
            self._content_layout.addStretch()
            return

        node = self._current_nodes[0]
        header = QLabel(f"{node.title} ({node.kind.value})")
        header.setWordWrap(True)
        header.setStyleSheet("font-weight: bold;")
        self._content_layout.addWidget(header)

        self._build_title_editor(node)

        if node.is_svs:
            self._build_svs_editor(node)
        elif node.is_console:
            self._build_console_editor(node)
        else:
            self._build_port_summary(node)

        self._status_label = QLabel()
        self._status_label.setWordWrap(True)
        self._status_label.setStyleSheet("color: #ff5555;")
        self._status_label.setVisible(False)
        self._content_layout.addWidget(self._status_label)

        self._content_layout.addStretch()

    def _build_title_editor(self, node: Node) -> None:
        form = QFormLayout()
        container = QWidget(self)
        container.setLayout(form)
        self._content_layout.addWidget(container)

        self._title_edit = QLineEdit(node.title)
        self._title_edit.editingFinished.connect(lambda: self._handle_title_changed(node))
        form.addRow("Name", self._title_edit)

    def _build_console_editor(self, node: Node) -> None:
        form = QFormLayout()
        container = QWidget(self)
        container.setLayout(form)
        self._content_layout.addWidget(container)

        outputs = available_outputs(node)
        if len(outputs) <= 1:
            form.addRow("Output", QLabel(outputs[0] if outputs else "none"))
            return

        combo = QComboBox()
        for signal in outputs:
            combo.addItem(signal, signal)
        self._is_updating = True
        index = combo.findData(console_output(node))
        combo.setCurrentIndex(index if index != -1 else 0)
        self._is_updating = False
        combo.currentIndexChanged.connect(lambda idx: self._handle_output_changed(node, idx))
        form.addRow("Output", combo)
        self._output_combo = combo

    def _build_svs_editor(self, node: Node) -> None:
        config = normalize_svs_config(node)

        counts = QFormLayout()
        counts_container = QWidget(self)
        counts_container.setLayout(counts)
        self._content_layout.addWidget(counts_container)

        input_spin = QSpinBox()
        input_spin.setRange(1, input_ceiling(node))
        input_spin.setValue(config.num_inputs)
        input_spin.valueChanged.connect(
            lambda value: self._apply(node, self._graph.set_svs_input_count, value)
        )
        counts.addRow("Inputs", input_spin)

        output_spin = QSpinBox()
        output_spin.setRange(1, output_ceiling(node))
        output_spin.setValue(config.num_outputs)
        output_spin.valueChanged.connect(
            lambda value: self._apply(node, self._graph.set_svs_output_count, value)
        )
        counts.addRow("Outputs", output_spin)

        self._content_layout.addWidget(
            self._signal_table("Input signals", config.inputs, node, self._graph.set_svs_input_type)
        )
        self._content_layout.addWidget(
            self._signal_table("Output signals", config.outputs, node, self._graph.set_svs_output_type)
        )

    def _signal_table(self, title: str, signals: List[str], node: Node, setter) -> QGroupBox:
        box = QGroupBox(title)
        form = QFormLayout(box)
        for index, signal in enumerate(signals):
            combo = QComboBox()
            combo.addItems(list(KNOWN_SIGNALS))
            if combo.findText(signal) == -1:
                combo.addItem(signal)
            combo.setCurrentText(signal)
            combo.currentTextChanged.connect(
                lambda text, port=index: self._apply(node, setter, port, text)
            )
            form.addRow(f"{index + 1}", combo)
        return box

    def _build_port_summary(self, node: Node) -> None:
        ports = get_ports(node)
        form = QFormLayout()
        container = QWidget(self)
        container.setLayout(form)
        self._content_layout.addWidget(container)

        inputs = ", ".join(port.signal_type for port in ports.inputs) or "none"
        outputs = ", ".join(port.signal_type for port in ports.outputs) or "none"
        inputs_label = QLabel(inputs)
        inputs_label.setWordWrap(True)
        outputs_label = QLabel(outputs)
        outputs_label.setWordWrap(True)
        form.addRow("Inputs", inputs_label)
        form.addRow("Outputs", outputs_label)

    def _handle_title_changed(self, node: Node) -> None:
        if self._title_edit is None:
            return
        title = self._title_edit.text().strip()
        if not title or title == node.title:
            return
        self._graph.set_node_title(node.id, title)
        self.configChanged.emit(node.id)

    def _handle_output_changed(self, node: Node, index: int) -> None:
        if self._is_updating or self._output_combo is None:
            return

        signal = self._output_combo.itemData(index)
        ok, conflict = self._graph.retype_console_output(node.id, signal)
        if ok:
            self._show_status("")
            self.configChanged.emit(node.id)
            return

        message = conflict.message if conflict is not None else "Output change rejected."
        logger.info("Rejected output change on %s: %s", node.id, message)
        self._is_updating = True
        previous = self._output_combo.findData(console_output(node))
        self._output_combo.setCurrentIndex(previous if previous != -1 else 0)
        self._is_updating = False
        self._show_status(message)
        self.conflictRaised.emit(message)

    def _apply(self, node: Node, setter, *args) -> None:
        if self._is_updating:
            return
        if setter(node.id, *args) is None:
            return
        self.configChanged.emit(node.id)
        # Count edits add or drop rows.
        self._is_updating = True
        try:
            self.refresh()
        finally:
            self._is_updating = False

    def _show_status(self, message: str) -> None:
        if self._status_label is None:
            return
        self._status_label.setText(message)
        self._status_label.setVisible(bool(message))

    def _clear_content(self) -> None:
        self._title_edit = None
        self._output_combo = None
        self._status_label = None
        while self._content_layout.count():
            item = self._content_layout.takeAt(0)
            widget = item.widget()
            if widget is not None:
                widget.deleteLater()

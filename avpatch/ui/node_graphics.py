from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from PySide6.QtCore import QPointF, QRectF, Qt, Signal
from PySide6.QtGui import QColor, QFont, QPainter, QPen
from PySide6.QtWidgets import QGraphicsItem, QGraphicsObject

from avpatch.nodes import Node, NodeKind, PortSpec, get_ports, signal_color


class PortHandleItem(QGraphicsObject):
    """
    Invisible interactive hotspot for a node port.
    """

    pressed = Signal(str, int)  # direction, port index
    hovered = Signal(str, int, bool)

    def __init__(self, direction: str, index: int, radius: float, parent=None):
        super().__init__(parent)
        self._direction = direction
        self._index = index
        self._radius = radius
        self.setAcceptedMouseButtons(Qt.LeftButton)
        self.setAcceptHoverEvents(True)
        self.setCursor(Qt.CrossCursor)

    def boundingRect(self) -> QRectF:  # type: ignore[override]
        size = self._radius * 2 + 6
        return QRectF(-size / 2, -size / 2, size, size)

    def paint(self, painter, option, widget=None) -> None:  # type: ignore[override]
        _ = painter, option, widget

    def mousePressEvent(self, event) -> None:  # type: ignore[override]
        if event.button() == Qt.LeftButton:
            self.pressed.emit(self._direction, self._index)
            event.accept()
        else:
            super().mousePressEvent(event)

    def hoverEnterEvent(self, event) -> None:  # type: ignore[override]
        self.hovered.emit(self._direction, self._index, True)
        super().hoverEnterEvent(event)

    def hoverLeaveEvent(self, event) -> None:  # type: ignore[override]
        self.hovered.emit(self._direction, self._index, False)
        super().hoverLeaveEvent(event)


KIND_BADGES: dict[NodeKind, tuple[str, QColor]] = {
    NodeKind.CONSOLE: ("CON", QColor("#7aa2f7")),
    NodeKind.SWITCHER: ("SW", QColor("#bb9af7")),
    NodeKind.DISPLAY: ("DSP", QColor("#2ac3de")),
    NodeKind.ADAPTER: ("ADP", QColor("#9aa5b1")),
    NodeKind.UPSCALER: ("UPS", QColor("#e0af68")),
}
SVS_BADGE = ("SVS", QColor("#9ece6a"))


class NodeGraphicsItem(QGraphicsObject):
    """
    Visual representation of a piece of equipment in the graphics scene.
    """

    positionChanged = Signal(str, float, float)
    portPressed = Signal(str, str, int)  # node_id, direction, port index

    WIDTH = 220
    HEADER_HEIGHT = 38
    PORT_HEIGHT = 24
    PADDING = 12

    TITLE_BRUSH = QColor("#23262f")
    BODY_BRUSH = QColor("#2f3340")
    BORDER_PEN = QPen(QColor("#3e4455"), 1.5)
    SELECTED_BORDER_PEN = QPen(QColor("#7aa2f7"), 2.4)
    TEXT_COLOR = QColor("#f0f3ff")
    PORT_RADIUS = 6

    def __init__(self, node: Node, parent: Optional[QGraphicsItem] = None) -> None:
        super().__init__(parent)
        self._node = node
        self._inputs: List[PortSpec] = []
        self._outputs: List[PortSpec] = []
        self._input_port_positions: Dict[int, QPointF] = {}
        self._output_port_positions: Dict[int, QPointF] = {}
        self._handles: List[PortHandleItem] = []
        self._hover_port: Optional[Tuple[str, int]] = None

        self.setFlag(QGraphicsItem.ItemIsMovable, True)
        self.setFlag(QGraphicsItem.ItemIsSelectable, True)
        self.setFlag(QGraphicsItem.ItemSendsGeometryChanges, True)
        self.setCacheMode(QGraphicsItem.DeviceCoordinateCache)
        self.setZValue(5)

        self._refresh_ports()

    @property
    def node(self) -> Node:
        return self._node

    def boundingRect(self) -> QRectF:  # type: ignore[override]
        port_rows = max(len(self._inputs), len(self._outputs))
        body_height = max(1, port_rows) * self.PORT_HEIGHT
        height = self.HEADER_HEIGHT + body_height + self.PADDING * 2
        return QRectF(0, 0, self.WIDTH, height)

    def paint(self, painter: QPainter, option, widget=None) -> None:  # type: ignore[override, unused-argument]
        rect = self.boundingRect()

        painter.setPen(Qt.NoPen)
        painter.setBrush(self.BODY_BRUSH)
        painter.drawRoundedRect(rect, 8, 8)

        header_rect = QRectF(rect.left(), rect.top(), rect.width(), self.HEADER_HEIGHT)
        painter.setBrush(self.TITLE_BRUSH)
        painter.drawRoundedRect(header_rect, 8, 8)
        painter.drawRect(
            QRectF(
                header_rect.left(),
                header_rect.top() + self.HEADER_HEIGHT / 2,
                header_rect.width(),
                self.HEADER_HEIGHT / 2,
            )
        )

        painter.setBrush(Qt.NoBrush)
        painter.setPen(self.SELECTED_BORDER_PEN if self.isSelected() else self.BORDER_PEN)
        painter.drawRoundedRect(rect.adjusted(0.5, 0.5, -0.5, -0.5), 8, 8)

        label, color = SVS_BADGE if self._node.is_svs else KIND_BADGES[self._node.kind]
        badge_rect = self._draw_badge(painter, header_rect, label, color)

        painter.setPen(self.TEXT_COLOR)
        font = QFont()
        font.setPointSizeF(10.5)
        font.setBold(True)
        painter.setFont(font)
        title_rect = QRectF(
            header_rect.left() + self.PADDING,
            header_rect.top(),
            max(0.0, badge_rect.left() - self.PADDING - (header_rect.left() + self.PADDING)),
            self.HEADER_HEIGHT,
        )
        painter.drawText(title_rect, Qt.AlignVCenter | Qt.AlignLeft, self._node.title)

        painter.setFont(QFont("Sans Serif", 9))
        self._draw_ports(painter, rect)

    def _draw_ports(self, painter: QPainter, rect: QRectF) -> None:
        self._input_port_positions.clear()
        self._output_port_positions.clear()

        port_rows = max(len(self._inputs), len(self._outputs))
        body_rect = QRectF(
            rect.left() + self.PADDING,
            rect.top() + self.HEADER_HEIGHT + self.PADDING,
            rect.width() - self.PADDING * 2,
            max(1, port_rows) * self.PORT_HEIGHT,
        )
        label_width = body_rect.width() / 2

        for port in self._inputs:
            y = body_rect.top() + port.index * self.PORT_HEIGHT + self.PORT_HEIGHT / 2
            position = QPointF(body_rect.left(), y)
            self._input_port_positions[port.index] = position
            self._draw_port(painter, position, port, ("input", port.index))
            painter.drawText(
                QRectF(position.x() + self.PORT_RADIUS * 2 + 4, y - self.PORT_HEIGHT / 2, label_width, self.PORT_HEIGHT),
                Qt.AlignVCenter | Qt.AlignLeft,
                port.signal_type,
            )

        for port in self._outputs:
            y = body_rect.top() + port.index * self.PORT_HEIGHT + self.PORT_HEIGHT / 2
            position = QPointF(body_rect.right(), y)
            self._output_port_positions[port.index] = position
            self._draw_port(painter, position, port, ("output", port.index))
            painter.drawText(
                QRectF(position.x() - self.PORT_RADIUS * 2 - label_width - 4, y - self.PORT_HEIGHT / 2, label_width, self.PORT_HEIGHT),
                Qt.AlignVCenter | Qt.AlignRight,
                port.signal_type,
            )

        self.update_port_handle_positions()

    def _draw_port(self, painter: QPainter, position: QPointF, port: PortSpec, key: Tuple[str, int]) -> None:
        color = QColor(signal_color(port.signal_type))
        if self._hover_port == key:
            color = color.lighter(140)
        painter.setPen(QPen(QColor("#111318"), 1.0))
        painter.setBrush(color)
        painter.drawEllipse(position, self.PORT_RADIUS, self.PORT_RADIUS)
        painter.setPen(self.TEXT_COLOR)

    def _draw_badge(self, painter: QPainter, header_rect: QRectF, label: str, color: QColor) -> QRectF:
        painter.save()
        badge_font = QFont()
        badge_font.setPointSizeF(8.5)
        badge_font.setBold(True)
        painter.setFont(badge_font)
        metrics = painter.fontMetrics()
        badge_width = metrics.horizontalAdvance(label) + 16
        badge_height = metrics.height() + 8
        badge_rect = QRectF(
            header_rect.right() - self.PADDING - badge_width,
            header_rect.top() + (self.HEADER_HEIGHT - badge_height) / 2,
            badge_width,
            badge_height,
        )
        painter.setPen(Qt.NoPen)
        painter.setBrush(color)
        painter.drawRoundedRect(badge_rect, badge_height / 2, badge_height / 2)
        painter.setPen(QColor("#111318"))
        painter.drawText(badge_rect, Qt.AlignCenter, label)
        painter.restore()
        return badge_rect

    def update_node(self, node: Node) -> None:
        self.prepareGeometryChange()
        self._node = node
        self._refresh_ports()
        self.update()

    def itemChange(self, change: QGraphicsItem.GraphicsItemChange, value):  # type: ignore[override]
        if change == QGraphicsItem.ItemPositionHasChanged:
            self.positionChanged.emit(self._node.id, value.x(), value.y())
        return super().itemChange(change, value)

    def scene_port_position(self, direction: str, index: int) -> Optional[QPointF]:
        if direction == "input":
            position = self._input_port_positions.get(index)
        else:
            position = self._output_port_positions.get(index)
        if position is None:
            return None
        return self.mapToScene(position)

    def port_at_scene_position(self, scene_pos: QPointF, direction: str, threshold: float = 12.0) -> Optional[int]:
        ports = self._input_port_positions if direction == "input" else self._output_port_positions
        threshold_sq = threshold * threshold
        for index, local_pos in ports.items():
            world_pos = self.mapToScene(local_pos)
            dx = world_pos.x() - scene_pos.x()
            dy = world_pos.y() - scene_pos.y()
            if dx * dx + dy * dy <= threshold_sq:
                return index
        return None

    def update_port_handle_positions(self) -> None:
        for handle in self._handles:
            positions = self._input_port_positions if handle.property("direction") == "input" else self._output_port_positions
            position = positions.get(int(handle.property("index")))
            if position is not None:
                handle.setPos(position)
        scene = self.scene()
        if scene is not None and hasattr(scene, "update_connections_for_node"):
            scene.update_connections_for_node(self._node.id)

    def _refresh_ports(self) -> None:
        ports = get_ports(self._node)
        self._inputs = ports.inputs
        self._outputs = ports.outputs
        self._input_port_positions.clear()
        self._output_port_positions.clear()
        self.setToolTip(self._tooltip())

        scene = self.scene()
        for handle in self._handles:
            if scene is not None:
                scene.removeItem(handle)
            else:
                handle.setParentItem(None)
        self._handles.clear()
        for direction, port_list in (("input", self._inputs), ("output", self._outputs)):
            for port in port_list:
                handle = PortHandleItem(direction, port.index, self.PORT_RADIUS, self)
                handle.setProperty("direction", direction)
                handle.setProperty("index", port.index)
                handle.pressed.connect(self._emit_port_pressed)
                handle.hovered.connect(self._set_hover_port)
                self._handles.append(handle)
        self._layout_ports()

    def _layout_ports(self) -> None:
        rect = self.boundingRect()
        top = rect.top() + self.HEADER_HEIGHT + self.PADDING + self.PORT_HEIGHT / 2
        for port in self._inputs:
            self._input_port_positions[port.index] = QPointF(rect.left() + self.PADDING, top + port.index * self.PORT_HEIGHT)
        for port in self._outputs:
            self._output_port_positions[port.index] = QPointF(rect.right() - self.PADDING, top + port.index * self.PORT_HEIGHT)
        self.update_port_handle_positions()

    def _tooltip(self) -> str:
        lines = [f"{self._node.title} ({'svs' if self._node.is_svs else self._node.kind.value})"]
        if self._node.signals:
            lines.append("Signals: " + ", ".join(self._node.signals))
        return "\n".join(lines)

    def _emit_port_pressed(self, direction: str, index: int) -> None:
        self.portPressed.emit(self._node.id, direction, index)

    def _set_hover_port(self, direction: str, index: int, hovered: bool) -> None:
        self._hover_port = (direction, index) if hovered else None
        self.update()

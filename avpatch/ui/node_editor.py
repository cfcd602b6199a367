from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple

from PySide6.QtCore import QPointF, Qt, Signal
from PySide6.QtGui import QColor, QKeyEvent, QPainter, QPen
from PySide6.QtWidgets import QGraphicsScene, QGraphicsView, QMenu, QWidget

from avpatch.nodes import Catalog, EquipmentTemplate, Node, NodeConnection, NodeGraph

from .connection_graphics import ConnectionGraphicsItem
from .node_graphics import NodeGraphicsItem

logger = logging.getLogger(__name__)

TEMPLATE_MIME_TYPE = "application/x-avpatch-template"


class NodeEditorScene(QGraphicsScene):
    """
    Scene responsible for rendering the equipment graph.
    """

    GRID_SIZE = 32
    GRID_PEN = QPen(QColor(70, 76, 92, 110), 1)

    portPressed = Signal(str, str, int)  # node_id, direction, port index

    def __init__(self, graph: NodeGraph, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._graph = graph
        self._node_items: Dict[str, NodeGraphicsItem] = {}
        self._connection_items: Dict[str, ConnectionGraphicsItem] = {}
        self._temporary_connection: Optional[ConnectionGraphicsItem] = None

    @property
    def graph(self) -> NodeGraph:
        return self._graph

    def drawBackground(self, painter, rect):  # type: ignore[override]
        super().drawBackground(painter, rect)

        start_x = int(rect.left()) - (int(rect.left()) % self.GRID_SIZE)
        start_y = int(rect.top()) - (int(rect.top()) % self.GRID_SIZE)

        painter.setPen(self.GRID_PEN)

        for x in range(start_x, int(rect.right()) + self.GRID_SIZE, self.GRID_SIZE):
            painter.drawLine(x, rect.top(), x, rect.bottom())

        for y in range(start_y, int(rect.bottom()) + self.GRID_SIZE, self.GRID_SIZE):
            painter.drawLine(rect.left(), y, rect.right(), y)

    def add_node_item(self, node: Node, position: Optional[QPointF] = None) -> NodeGraphicsItem:
        item = NodeGraphicsItem(node)
        self._node_items[node.id] = item
        self.addItem(item)

        if position is None:
            stored = self._graph.node_position(node.id)
            position = QPointF(*stored) if stored is not None else QPointF(0.0, 0.0)

        item.setPos(position)
        self._graph.set_node_position(node.id, position.x(), position.y())
        item.positionChanged.connect(self._handle_node_position_changed)
        item.portPressed.connect(self.portPressed.emit)
        return item

    def remove_node_item(self, node_id: str) -> None:
        item = self._node_items.pop(node_id, None)
        if item is not None:
            self.removeItem(item)

    def clear_items(self) -> None:
        for item in list(self._node_items.values()):
            self.removeItem(item)
        self._node_items.clear()

        for item in list(self._connection_items.values()):
            self.removeItem(item)
        self._connection_items.clear()

        self.clear_temporary_connection()

    def refresh_node(self, node: Node) -> None:
        item = self._node_items.get(node.id)
        if item is not None:
            item.update_node(node)

    def selected_node_items(self) -> list[NodeGraphicsItem]:
        return [item for item in self.selectedItems() if isinstance(item, NodeGraphicsItem)]

    def selected_connection_items(self) -> list[ConnectionGraphicsItem]:
        return [item for item in self.selectedItems() if isinstance(item, ConnectionGraphicsItem)]

    def update_connection_path(self, item: ConnectionGraphicsItem) -> None:
        source_node, source_port = item.source
        target = item.target
        start = self.port_scene_position(source_node, "output", source_port)
        end = (
            self.port_scene_position(target[0], "input", target[1])
            if target is not None
            else None
        )
        if start is None:
            return
        item.update_path(start, end or start)

    def update_connections_for_node(self, node_id: str) -> None:
        for item in self._connection_items.values():
            target = item.target
            if item.source[0] == node_id or (target is not None and target[0] == node_id):
                self.update_connection_path(item)

    def sync_connections(self) -> None:
        """
        Bring the cable items in line with the graph's connections.
        """

        connections: Dict[str, NodeConnection] = {
            connection.id: connection for connection in self._graph.connections()
        }
        invalid = {connection.id for connection in self._graph.incompatible_connections()}

        for connection_id in set(self._connection_items) - set(connections):
            item = self._connection_items.pop(connection_id)
            self.removeItem(item)

        for connection_id, connection in connections.items():
            item = self._connection_items.get(connection_id)
            if item is None:
                item = ConnectionGraphicsItem(
                    (connection.source_node, connection.source_port),
                    (connection.target_node, connection.target_port),
                    signal_type=connection.signal_type,
                    connection_id=connection.id,
                )
                self._connection_items[connection_id] = item
                self.addItem(item)
            item.set_signal_type(connection.signal_type)
            item.set_invalid(connection_id in invalid)
            self.update_connection_path(item)

    def start_temporary_connection(self, source_node: str, source_port: int) -> None:
        self.clear_temporary_connection()
        self._temporary_connection = ConnectionGraphicsItem((source_node, source_port))
        self.addItem(self._temporary_connection)
        start = self.port_scene_position(source_node, "output", source_port)
        if start is not None:
            self._temporary_connection.update_path(start, start)

    def update_temporary_connection(self, scene_pos: QPointF) -> None:
        if self._temporary_connection is None:
            return
        source_node, source_port = self._temporary_connection.source
        start = self.port_scene_position(source_node, "output", source_port)
        if start is None:
            return
        target = self.port_at(scene_pos, "input")
        if target is not None:
            self._temporary_connection.set_target(target)
            target_pos = self.port_scene_position(target[0], "input", target[1]) or scene_pos
            ok, _reason = self._graph.can_connect(source_node, source_port, target[0], target[1])
            self._temporary_connection.set_invalid(not ok)
        else:
            self._temporary_connection.set_target(None)
            self._temporary_connection.set_invalid(False)
            target_pos = scene_pos
        self._temporary_connection.update_path(start, target_pos)

    def clear_temporary_connection(self) -> None:
        if self._temporary_connection is not None:
            self.removeItem(self._temporary_connection)
            self._temporary_connection = None

    def port_scene_position(self, node_id: str, direction: str, index: int) -> Optional[QPointF]:
        node_item = self._node_items.get(node_id)
        if node_item is None:
            return None
        return node_item.scene_port_position(direction, index)

    def port_at(self, scene_pos: QPointF, direction: str) -> Optional[Tuple[str, int]]:
        for node_id, node_item in reversed(list(self._node_items.items())):
            index = node_item.port_at_scene_position(scene_pos, direction)
            if index is not None:
                return node_id, index
        return None

    def _handle_node_position_changed(self, node_id: str, x: float, y: float) -> None:
        self._graph.set_node_position(node_id, x, y)
        self.update_connections_for_node(node_id)


@dataclass
class PendingConnection:
    node_id: str
    port: int


class NodeEditorView(QGraphicsView):
    """
    Graphics view wrapper around the node editor scene.

    All edits are forwarded to the :class:`NodeGraph`; the scene is then
    re-synchronised from it.
    """

    selectionChanged = Signal(object)  # list[Node]
    graphChanged = Signal()
    connectionRejected = Signal(str)  # reason

    def __init__(
        self,
        graph: NodeGraph,
        catalog: Catalog,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self._graph = graph
        self._catalog = catalog
        self._scene = NodeEditorScene(self._graph, self)
        self.setScene(self._scene)
        self.setRenderHint(QPainter.Antialiasing)
        self.setRenderHint(QPainter.TextAntialiasing)
        self.setDragMode(QGraphicsView.ScrollHandDrag)
        self.setViewportUpdateMode(QGraphicsView.FullViewportUpdate)
        self.setTransformationAnchor(QGraphicsView.AnchorUnderMouse)
        self.setResizeAnchor(QGraphicsView.AnchorViewCenter)
        self.setAcceptDrops(True)

        self._scene.portPressed.connect(self._on_port_pressed)
        self._scene.selectionChanged.connect(self._emit_selection_changed)

        self._pending_connection: Optional[PendingConnection] = None

        self.reload()

    @property
    def graph(self) -> NodeGraph:
        return self._graph

    @property
    def templates(self) -> Iterable[EquipmentTemplate]:
        return self._catalog.templates()

    def set_catalog(self, catalog: Catalog) -> None:
        self._catalog = catalog

    def add_node(self, template_id: str, position: Optional[QPointF] = None) -> Optional[Node]:
        try:
            template = self._catalog.get(template_id)
        except KeyError:
            logger.warning("Unknown catalog item %s.", template_id)
            return None

        if position is None:
            position = self.mapToScene(self.viewport().rect().center())
        node = self._graph.create_node(template, (position.x(), position.y()))
        self._scene.add_node_item(node, position)
        self.graphChanged.emit()
        return node

    def refresh(self) -> None:
        """
        Repaint every node and cable after the graph was edited elsewhere.
        """

        for node in self._graph.nodes().values():
            self._scene.refresh_node(node)
        self._scene.sync_connections()

    def reload(self) -> None:
        self._scene.clear_items()
        for node in self._graph.nodes().values():
            self._scene.add_node_item(node)
        self._scene.sync_connections()
        self._center_on_graph()
        self._emit_selection_changed()

    def viewport_state(self) -> Dict[str, float]:
        center = self.mapToScene(self.viewport().rect().center())
        return {"x": center.x(), "y": center.y(), "zoom": self.transform().m11()}

    def restore_viewport(self, viewport: Optional[Dict[str, float]]) -> None:
        if not viewport:
            return
        try:
            zoom = float(viewport.get("zoom", 1.0))
            x, y = float(viewport.get("x", 0.0)), float(viewport.get("y", 0.0))
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid viewport %r", viewport)
            return
        self.resetTransform()
        if zoom > 0:
            self.scale(zoom, zoom)
        self.centerOn(x, y)

    def contextMenuEvent(self, event) -> None:  # type: ignore[override]
        scene_pos = self.mapToScene(event.pos())
        menu = QMenu(self)

        delete_action = None
        if self._scene.selectedItems():
            delete_action = menu.addAction("Delete Selected")
            menu.addSeparator()

        for category, templates in self._catalog.by_category().items():
            if not templates:
                continue
            menu.addSection(category.capitalize())
            for template in templates:
                action = menu.addAction(template.name)
                action.setData(template.id)
                action.setStatusTip(template.description)

        menu.addSeparator()
        reset_action = menu.addAction("Reset View")

        chosen = menu.exec(event.globalPos())
        if chosen is None:
            return
        if chosen == delete_action:
            self._delete_selected_items()
            return
        if chosen == reset_action:
            self.resetTransform()
            self.centerOn(0, 0)
            return

        template_id = chosen.data()
        if template_id:
            self.add_node(str(template_id), scene_pos)

    def dragEnterEvent(self, event) -> None:  # type: ignore[override]
        if event.mimeData().hasFormat(TEMPLATE_MIME_TYPE):
            event.acceptProposedAction()
        else:
            super().dragEnterEvent(event)

    def dragMoveEvent(self, event) -> None:  # type: ignore[override]
        if event.mimeData().hasFormat(TEMPLATE_MIME_TYPE):
            event.acceptProposedAction()
        else:
            super().dragMoveEvent(event)

    def dropEvent(self, event) -> None:  # type: ignore[override]
        mime = event.mimeData()
        if not mime.hasFormat(TEMPLATE_MIME_TYPE):
            super().dropEvent(event)
            return
        template_id = bytes(mime.data(TEMPLATE_MIME_TYPE)).decode("utf-8")
        self.add_node(template_id, self.mapToScene(event.position().toPoint()))
        event.acceptProposedAction()

    def keyPressEvent(self, event: QKeyEvent) -> None:  # type: ignore[override]
        if event.key() in {Qt.Key_Delete, Qt.Key_Backspace}:
            self._delete_selected_items()
            event.accept()
            return
        if event.key() == Qt.Key_Escape and self._pending_connection is not None:
            self._cancel_pending_connection()
            event.accept()
            return
        super().keyPressEvent(event)

    def wheelEvent(self, event) -> None:  # type: ignore[override]
        if event.modifiers() & Qt.ControlModifier:
            zoom_factor = 1.2 if event.angleDelta().y() > 0 else 1 / 1.2
            self.scale(zoom_factor, zoom_factor)
        else:
            super().wheelEvent(event)

    def mouseMoveEvent(self, event) -> None:  # type: ignore[override]
        if self._pending_connection is not None:
            self._scene.update_temporary_connection(self.mapToScene(event.pos()))
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event) -> None:  # type: ignore[override]
        target = None
        if self._pending_connection is not None:
            target = self._scene.port_at(self.mapToScene(event.pos()), "input")

        # Let the scene release its mouse grabber before the graph changes.
        super().mouseReleaseEvent(event)

        if self._pending_connection is None:
            return
        if target is not None:
            self._complete_connection(target[0], target[1])
        else:
            self._cancel_pending_connection()

    def delete_selected_items(self) -> None:
        self._delete_selected_items()

    def _delete_selected_items(self) -> None:
        changed = False
        for connection_item in self._scene.selected_connection_items():
            if connection_item.connection_id is not None:
                changed |= self._graph.disconnect(connection_item.connection_id) is not None

        for item in self._scene.selected_node_items():
            node_id = item.node.id
            self._graph.remove_node(node_id)
            self._scene.remove_node_item(node_id)
            changed = True

        self._scene.sync_connections()
        if changed:
            self.graphChanged.emit()

    def _center_on_graph(self) -> None:
        if not self._scene.items():
            self.centerOn(0, 0)
            return
        self.centerOn(self._scene.itemsBoundingRect().center())

    def _emit_selection_changed(self) -> None:
        nodes = [item.node for item in self._scene.selected_node_items()]
        self.selectionChanged.emit(nodes)

    def _on_port_pressed(self, node_id: str, direction: str, index: int) -> None:
        if direction != "output":
            return
        self._pending_connection = PendingConnection(node_id=node_id, port=index)
        self._scene.start_temporary_connection(node_id, index)

    def _complete_connection(self, node_id: str, index: int) -> None:
        source = self._pending_connection
        self._cancel_pending_connection()
        if source is None:
            return

        ok, reason = self._graph.can_connect(source.node_id, source.port, node_id, index)
        if ok and self._graph.connect(source.node_id, source.port, node_id, index) is not None:
            self._scene.sync_connections()
            self.graphChanged.emit()
        else:
            self.connectionRejected.emit(reason or "Connection rejected.")

    def _cancel_pending_connection(self) -> None:
        self._pending_connection = None
        self._scene.clear_temporary_connection()

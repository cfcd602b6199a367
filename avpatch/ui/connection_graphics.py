from __future__ import annotations

from typing import Optional, Tuple

from PySide6.QtCore import QPointF, Qt
from PySide6.QtGui import QColor, QPainterPath, QPen
from PySide6.QtWidgets import QGraphicsItem, QGraphicsPathItem

from avpatch.nodes import signal_color


class ConnectionGraphicsItem(QGraphicsPathItem):
    """
    Visual cable between two node ports, coloured by the signal it carries.
    """

    SELECTED_COLOR = QColor("#ffffff")
    INVALID_COLOR = QColor("#ff5555")

    def __init__(
        self,
        source: Tuple[str, int],
        target: Optional[Tuple[str, int]] = None,
        signal_type: str = "",
        connection_id: Optional[str] = None,
        parent=None,
    ) -> None:
        super().__init__(parent)
        self._source = source
        self._target = target
        self._connection_id = connection_id
        self._signal_type = signal_type
        self._invalid = False
        self._hovered = False

        self.setFlag(QGraphicsItem.ItemIsSelectable, connection_id is not None)
        self.setZValue(1)
        self.setAcceptHoverEvents(True)
        self._apply_pen()

    @property
    def connection_id(self) -> Optional[str]:
        return self._connection_id

    @property
    def source(self) -> Tuple[str, int]:
        return self._source

    @property
    def target(self) -> Optional[Tuple[str, int]]:
        return self._target

    def set_target(self, target: Optional[Tuple[str, int]]) -> None:
        self._target = target

    def set_signal_type(self, signal_type: str) -> None:
        if signal_type != self._signal_type:
            self._signal_type = signal_type
            self._apply_pen()

    def set_invalid(self, invalid: bool) -> None:
        if invalid != self._invalid:
            self._invalid = invalid
            self._apply_pen()

    def update_path(self, start: QPointF, end: QPointF) -> None:
        path = QPainterPath(start)
        dx = max(abs(end.x() - start.x()) * 0.5, 60.0)
        ctrl1 = QPointF(start.x() + dx, start.y())
        ctrl2 = QPointF(end.x() - dx, end.y())
        path.cubicTo(ctrl1, ctrl2, end)
        self.setPath(path)

    def hoverEnterEvent(self, event) -> None:  # type: ignore[override]
        self._hovered = True
        self._apply_pen()
        super().hoverEnterEvent(event)

    def hoverLeaveEvent(self, event) -> None:  # type: ignore[override]
        self._hovered = False
        self._apply_pen()
        super().hoverLeaveEvent(event)

    def itemChange(self, change: QGraphicsItem.GraphicsItemChange, value):  # type: ignore[override]
        if change == QGraphicsItem.ItemSelectedHasChanged:
            self._apply_pen()
        return super().itemChange(change, value)

    def _apply_pen(self) -> None:
        if self.isSelected():
            color, width = self.SELECTED_COLOR, 3.0
        elif self._invalid:
            color, width = self.INVALID_COLOR, 2.6
        else:
            color, width = QColor(signal_color(self._signal_type)), 2.0
        if self._hovered:
            color, width = color.lighter(130), width + 0.6
        pen = QPen(color, width)
        if self._invalid:
            pen.setStyle(Qt.DashLine)
        self.setPen(pen)

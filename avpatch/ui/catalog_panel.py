from __future__ import annotations

from typing import List, Optional

from PySide6.QtCore import QMimeData, Qt, Signal
from PySide6.QtGui import QBrush, QColor
from PySide6.QtWidgets import (
    QGroupBox,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from avpatch.nodes import Catalog, EquipmentTemplate

from .node_editor import TEMPLATE_MIME_TYPE

SECTION_TITLES = {
    "console": "Consoles",
    "switcher": "Switchers",
    "display": "Displays",
    "other": "Other",
}


class _TemplateList(QListWidget):
    def mimeData(self, items: List[QListWidgetItem]) -> QMimeData:  # type: ignore[override]
        mime = QMimeData()
        template_ids = [item.data(Qt.UserRole) for item in items if item.data(Qt.UserRole)]
        if template_ids:
            mime.setData(TEMPLATE_MIME_TYPE, str(template_ids[0]).encode("utf-8"))
        return mime

    def mimeTypes(self) -> List[str]:  # type: ignore[override]
        return [TEMPLATE_MIME_TYPE]


class CatalogPanel(QGroupBox):
    """
    Sidebar listing the equipment catalog, grouped by category.
    """

    templateActivated = Signal(str)  # template id

    def __init__(self, catalog: Catalog, parent: Optional[QWidget] = None) -> None:
        super().__init__("Equipment", parent)
        self._catalog = catalog

        self._search_edit = QLineEdit()
        self._search_edit.setPlaceholderText("Search equipment…")
        self._search_edit.setClearButtonEnabled(True)
        self._search_edit.textChanged.connect(self.refresh)

        self._template_list = _TemplateList()
        self._template_list.setSelectionMode(QListWidget.SingleSelection)
        self._template_list.setDragEnabled(True)
        self._template_list.itemActivated.connect(self._handle_item_activated)
        self._template_list.currentItemChanged.connect(self._handle_current_change)

        self._add_button = QPushButton("Add to Canvas")
        self._add_button.setEnabled(False)
        self._add_button.clicked.connect(self._add_current)

        self._description_label = QLabel()
        self._description_label.setWordWrap(True)
        self._description_label.setAlignment(Qt.AlignTop | Qt.AlignLeft)

        layout = QVBoxLayout(self)
        layout.addWidget(self._search_edit)
        layout.addWidget(self._template_list, 3)
        layout.addWidget(self._add_button)
        layout.addWidget(self._description_label, 1)

        self.refresh()

    def set_catalog(self, catalog: Catalog) -> None:
        self._catalog = catalog
        self.refresh()

    def search_text(self) -> str:
        return self._search_edit.text()

    def visible_template_ids(self) -> List[str]:
        ids: List[str] = []
        for index in range(self._template_list.count()):
            template_id = self._template_list.item(index).data(Qt.UserRole)
            if template_id:
                ids.append(str(template_id))
        return ids

    def refresh(self) -> None:
        self._template_list.clear()
        groups = self._catalog.by_category(self._search_edit.text())

        if not any(groups.values()):
            placeholder = QListWidgetItem("No matching equipment")
            placeholder.setFlags(Qt.NoItemFlags)
            self._template_list.addItem(placeholder)
            return

        for category, templates in groups.items():
            if not templates:
                continue
            header = QListWidgetItem(SECTION_TITLES.get(category, category.capitalize()))
            header.setFlags(Qt.NoItemFlags)
            font = header.font()
            font.setBold(True)
            header.setFont(font)
            header.setForeground(QBrush(QColor("#9aa5b1")))
            self._template_list.addItem(header)

            for template in templates:
                self._template_list.addItem(self._template_item(template))

    def _template_item(self, template: EquipmentTemplate) -> QListWidgetItem:
        item = QListWidgetItem(f"  {template.name}")
        item.setData(Qt.UserRole, template.id)
        item.setFlags(Qt.ItemIsSelectable | Qt.ItemIsEnabled | Qt.ItemIsDragEnabled)
        if template.description:
            item.setToolTip(template.description)
        return item

    def _handle_item_activated(self, item: QListWidgetItem) -> None:
        template_id = item.data(Qt.UserRole)
        if template_id:
            self.templateActivated.emit(str(template_id))

    def _handle_current_change(self, current: QListWidgetItem, previous: QListWidgetItem) -> None:
        _ = previous
        template_id = current.data(Qt.UserRole) if current is not None else None
        self._add_button.setEnabled(bool(template_id))
        if not template_id:
            self._description_label.clear()
            return
        template = self._catalog.get(str(template_id))
        self._description_label.setText(template.description)

    def _add_current(self) -> None:
        current = self._template_list.currentItem()
        if current is not None:
            self._handle_item_activated(current)

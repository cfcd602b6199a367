from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from avpatch.config import DEFAULT_SVS_MAX_INPUTS, DEFAULT_SVS_MAX_OUTPUTS, catalog_path

from .base import Node, NodeKind, StaticSpec, SVSConfig
from .signals import DEFAULT_SVS_SIGNAL, normalize_signal

logger = logging.getLogger(__name__)

CATEGORY_ORDER: Tuple[str, ...] = ("console", "switcher", "display", "other")


@dataclass(frozen=True)
class EquipmentTemplate:
    """
    Catalog entry describing how to instantiate a piece of equipment.
    """

    id: str
    name: str
    category: str
    description: str = ""
    inputs: Sequence[str] = field(default_factory=tuple)
    outputs: Sequence[str] = field(default_factory=tuple)
    signals: Sequence[str] = field(default_factory=tuple)
    is_svs: bool = False
    max_inputs: Optional[int] = None
    max_outputs: Optional[int] = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "EquipmentTemplate":
        specs = payload.get("specs") or {}
        if not isinstance(specs, Mapping):
            specs = {}
        return cls(
            id=str(payload["id"]),
            name=str(payload.get("name") or payload["id"]),
            category=str(payload.get("category") or "adapter").lower(),
            description=str(payload.get("description") or ""),
            inputs=tuple(_labels(specs.get("inputs"))),
            outputs=tuple(_labels(specs.get("outputs"))),
            signals=tuple(_labels(specs.get("signals"))),
            is_svs=bool(specs.get("isSVS", specs.get("is_svs", False))),
            max_inputs=_optional_int(specs.get("maxInputs", specs.get("max_inputs"))),
            max_outputs=_optional_int(specs.get("maxOutputs", specs.get("max_outputs"))),
        )

    @property
    def kind(self) -> NodeKind:
        return NodeKind.coerce(self.category)

    def instantiate(self, node_id: str) -> Node:
        node = Node(
            id=node_id,
            kind=self.kind,
            title=self.name,
            is_svs=self.is_svs,
            max_inputs=self.max_inputs,
            max_outputs=self.max_outputs,
            template_id=self.id,
            signals=list(self.signals),
        )
        if self.is_svs:
            max_inputs = self.max_inputs or DEFAULT_SVS_MAX_INPUTS
            max_outputs = self.max_outputs or DEFAULT_SVS_MAX_OUTPUTS
            inputs = (list(self.inputs) or [DEFAULT_SVS_SIGNAL])[:max_inputs]
            outputs = (list(self.outputs) or [DEFAULT_SVS_SIGNAL])[:max_outputs]
            node.dynamic_config = SVSConfig(
                num_inputs=len(inputs),
                num_outputs=len(outputs),
                inputs=inputs,
                outputs=outputs,
            )
        else:
            node.static_spec = StaticSpec(inputs=list(self.inputs), outputs=list(self.outputs))
        return node


class Catalog:
    """
    Read-only list of equipment templates, as served to the sidebar.
    """

    def __init__(self, templates: Iterable[EquipmentTemplate]) -> None:
        self._templates: List[EquipmentTemplate] = []
        self._by_id: Dict[str, EquipmentTemplate] = {}
        for template in templates:
            if template.id in self._by_id:
                logger.warning("Duplicate catalog id %s; keeping the first entry.", template.id)
                continue
            self._templates.append(template)
            self._by_id[template.id] = template

    def templates(self) -> Tuple[EquipmentTemplate, ...]:
        return tuple(self._templates)

    def get(self, template_id: str) -> EquipmentTemplate:
        return self._by_id[template_id]

    def search(self, text: str = "") -> Tuple[EquipmentTemplate, ...]:
        needle = text.strip().lower()
        return tuple(
            template for template in self._templates if needle in template.name.lower()
        )

    def by_category(self, text: str = "") -> Dict[str, Tuple[EquipmentTemplate, ...]]:
        """
        Group matching templates under the sidebar sections. Categories other
        than consoles, switchers and displays land in ``other``.
        """

        groups: Dict[str, List[EquipmentTemplate]] = {name: [] for name in CATEGORY_ORDER}
        for template in self.search(text):
            key = template.category if template.category in groups else "other"
            groups[key].append(template)
        return {name: tuple(items) for name, items in groups.items()}

    def __len__(self) -> int:
        return len(self._templates)


def load_catalog(path: Path) -> Catalog:
    contents = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(contents, Mapping):
        contents = contents.get("items", [])
    templates: List[EquipmentTemplate] = []
    for entry in contents:
        if not isinstance(entry, Mapping) or "id" not in entry:
            logger.warning("Skipping malformed catalog entry in %s: %r", path, entry)
            continue
        templates.append(EquipmentTemplate.from_dict(entry))
    return Catalog(templates)


_DEFAULT_CATALOG: Optional[Catalog] = None


def get_catalog() -> Catalog:
    """
    Return the catalog configured for this installation, loading it once.
    """

    global _DEFAULT_CATALOG
    if _DEFAULT_CATALOG is None:
        _DEFAULT_CATALOG = load_catalog(catalog_path())
    return _DEFAULT_CATALOG


def _labels(value: object) -> List[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [normalize_signal(item) for item in value if normalize_signal(item)]


def _optional_int(value: object) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None

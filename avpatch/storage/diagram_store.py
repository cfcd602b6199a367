from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from avpatch.nodes import Node, NodeConnection, NodeGraph, NodeKind, StaticSpec, SVSConfig

logger = logging.getLogger(__name__)


class DiagramFormatError(ValueError):
    """
    Raised when a diagram file cannot be read as a snapshot.
    """


class DiagramStore:
    """
    Persistence helper for saving and loading diagram snapshots.

    A snapshot is ``{"version", "name", "nodes", "edges", "viewport"?}``.
    Loading never trusts stored connections: the graph is revalidated so
    cached signal types follow the nodes as they are now.
    """

    VERSION = 1
    DEFAULT_NAME = "Untitled Setup"

    def save(self, path: Path, payload: Dict[str, Any]) -> None:
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    def load(self, path: Path) -> Dict[str, Any]:
        try:
            contents = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise DiagramFormatError(f"{path.name} is not a UTF-8 text file: {exc}") from exc
        try:
            payload = json.loads(contents)
        except json.JSONDecodeError as exc:
            raise DiagramFormatError(f"{path.name} is not valid JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise DiagramFormatError(f"{path.name} does not contain a diagram.")
        return payload

    def export_graph(
        self,
        graph: NodeGraph,
        *,
        name: str = DEFAULT_NAME,
        viewport: Optional[Mapping[str, float]] = None,
    ) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "version": self.VERSION,
            "name": name,
            "nodes": [self._export_node(graph, node) for node in graph.nodes().values()],
            "edges": [],
        }

        for connection in graph.connections():
            data["edges"].append(
                {
                    "id": connection.id,
                    "source_node": connection.source_node,
                    "source_port": connection.source_port,
                    "target_node": connection.target_node,
                    "target_port": connection.target_port,
                    "signal_type": connection.signal_type,
                }
            )

        if viewport is not None:
            data["viewport"] = dict(viewport)
        return data

    def import_graph(self, graph: NodeGraph, payload: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Replace the graph contents with a snapshot.

        Returns the diagram name and viewport together with the connections
        that were dropped while revalidating.
        """

        nodes_data = payload.get("nodes") or []
        edges_data = payload.get("edges") or []
        if not isinstance(nodes_data, list) or not isinstance(edges_data, list):
            raise DiagramFormatError("Diagram nodes and edges must be lists.")

        graph.clear()

        for node_payload in nodes_data:
            node = self._import_node(node_payload)
            if node is None:
                logger.warning("Skipping malformed node entry: %r", node_payload)
                continue
            if graph.get_node(node.id) is not None:
                logger.warning("Skipping duplicate node id %s.", node.id)
                continue
            graph.add_node(node)

        unnamed: List[NodeConnection] = []
        for edge_payload in edges_data:
            connection = self._import_connection(edge_payload)
            if connection is None:
                logger.warning("Skipping malformed edge entry: %r", edge_payload)
                continue
            if connection.id:
                graph.restore_connection(connection)
            else:
                unnamed.append(connection)
        # Stored ids must all be known before fresh ones are handed out.
        for connection in unnamed:
            graph.restore_connection(connection)

        dropped = graph.revalidate()

        viewport = payload.get("viewport")
        return {
            "name": str(payload.get("name") or self.DEFAULT_NAME),
            "viewport": dict(viewport) if isinstance(viewport, Mapping) else None,
            "dropped": dropped,
        }

    def save_graph(
        self,
        path: Path,
        graph: NodeGraph,
        *,
        name: str = DEFAULT_NAME,
        viewport: Optional[Mapping[str, float]] = None,
    ) -> None:
        self.save(path, self.export_graph(graph, name=name, viewport=viewport))

    def load_graph(self, path: Path, graph: NodeGraph) -> Dict[str, Any]:
        payload = self.load(path)
        return self.import_graph(graph, payload)

    def _export_node(self, graph: NodeGraph, node: Node) -> Dict[str, Any]:
        position = graph.node_position(node.id) or (0.0, 0.0)
        data: Dict[str, Any] = {
            "id": node.id,
            "kind": node.kind.value,
            "title": node.title,
            "template_id": node.template_id,
            "is_svs": node.is_svs,
            "selected_output": node.selected_output,
            "signals": list(node.signals),
            "position": list(position),
        }
        if node.static_spec is not None:
            data["static_spec"] = {
                "inputs": list(node.static_spec.inputs),
                "outputs": list(node.static_spec.outputs),
            }
        if node.dynamic_config is not None:
            data["dynamic_config"] = {
                "num_inputs": node.dynamic_config.num_inputs,
                "num_outputs": node.dynamic_config.num_outputs,
                "inputs": list(node.dynamic_config.inputs),
                "outputs": list(node.dynamic_config.outputs),
            }
        if node.max_inputs is not None:
            data["max_inputs"] = node.max_inputs
        if node.max_outputs is not None:
            data["max_outputs"] = node.max_outputs
        return data

    def _import_node(self, payload: Any) -> Optional[Node]:
        if not isinstance(payload, Mapping):
            return None
        node_id = payload.get("id")
        if not node_id:
            return None

        node = Node(
            id=str(node_id),
            kind=NodeKind.coerce(payload.get("kind")),
            title=str(payload.get("title") or node_id),
            is_svs=bool(payload.get("is_svs", False)),
            selected_output=_optional_str(payload.get("selected_output")),
            max_inputs=_optional_int(payload.get("max_inputs")),
            max_outputs=_optional_int(payload.get("max_outputs")),
            template_id=_optional_str(payload.get("template_id")),
            signals=_str_list(payload.get("signals")),
        )

        static_spec = payload.get("static_spec")
        if isinstance(static_spec, Mapping):
            node.static_spec = StaticSpec(
                inputs=_str_list(static_spec.get("inputs")),
                outputs=_str_list(static_spec.get("outputs")),
            )

        # Stored SVS data is kept as-is; the port model heals it on read.
        dynamic_config = payload.get("dynamic_config")
        if isinstance(dynamic_config, Mapping):
            node.dynamic_config = SVSConfig(
                num_inputs=_optional_int(dynamic_config.get("num_inputs")) or 1,
                num_outputs=_optional_int(dynamic_config.get("num_outputs")) or 1,
                inputs=_str_list(dynamic_config.get("inputs")),
                outputs=_str_list(dynamic_config.get("outputs")),
            )

        if node.selected_output is not None and node.static_spec is not None:
            offered = {output.lower() for output in node.static_spec.outputs}
            if node.selected_output.lower() not in offered:
                logger.warning(
                    "Node %s selected output %s is not offered; using the default.",
                    node.id,
                    node.selected_output,
                )
                node.selected_output = None

        position = payload.get("position")
        if isinstance(position, (list, tuple)) and len(position) == 2:
            try:
                node.config["position"] = (float(position[0]), float(position[1]))
            except (TypeError, ValueError):
                logger.warning("Ignoring invalid position for node %s: %r", node.id, position)
        return node

    def _import_connection(self, payload: Any) -> Optional[NodeConnection]:
        if not isinstance(payload, Mapping):
            return None
        source_node = payload.get("source_node")
        target_node = payload.get("target_node")
        source_port = _optional_int(payload.get("source_port"))
        target_port = _optional_int(payload.get("target_port"))
        if not source_node or not target_node or source_port is None or target_port is None:
            return None
        return NodeConnection(
            id=str(payload.get("id") or ""),
            source_node=str(source_node),
            source_port=source_port,
            target_node=str(target_node),
            target_port=target_port,
            signal_type=str(payload.get("signal_type") or ""),
        )


def _optional_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _str_list(value: Any) -> list[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [str(item) for item in value if item is not None]

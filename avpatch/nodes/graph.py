from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Set, Tuple

from . import configurator
from .base import Node, SVSConfig
from .ports import available_outputs, effective_output_type, input_type
from .signals import is_compatible, normalize_signal
from .validation import ConnectionCandidate, check_connection

logger = logging.getLogger(__name__)

_NUMERIC_SUFFIX = re.compile(r"(\d+)$")


@dataclass
class NodeConnection:
    id: str
    source_node: str
    source_port: int
    target_node: str
    target_port: int
    signal_type: str


@dataclass(frozen=True)
class RetypeConflict:
    """
    Why a console output change was refused.
    """

    node_id: str
    signal_type: str
    reason: str
    target_node: Optional[str] = None
    target_title: Optional[str] = None
    target_port: Optional[int] = None
    target_type: Optional[str] = None

    @property
    def message(self) -> str:
        if self.target_title is None:
            return self.reason
        return (
            f"Cannot switch to {self.signal_type}: {self.target_title} input "
            f"{self.target_port} only accepts {self.target_type}."
        )


class NodeFactory(Protocol):
    def instantiate(self, node_id: str) -> Node:
        ...


class NodeGraph:
    """
    Canonical collection of equipment nodes and the cables between them.

    Every mutation goes through this class so that the connection invariants
    hold after each call: an input port carries at most one connection, a
    console drives at most one connection, and each connection caches the
    signal currently leaving its source port.
    """

    NODE_PREFIX = "node_"
    CONNECTION_PREFIX = "edge_"

    def __init__(self) -> None:
        self._nodes: Dict[str, Node] = {}
        self._connections: List[NodeConnection] = []
        self._next_node_number = 0
        self._next_connection_number = 0

    # -- nodes ---------------------------------------------------------------

    def next_node_id(self) -> str:
        node_id = f"{self.NODE_PREFIX}{self._next_node_number}"
        self._next_node_number += 1
        return node_id

    def add_node(self, node: Node) -> None:
        if node.id in self._nodes:
            raise ValueError(f"Node id {node.id!r} is already in use.")
        node.config.setdefault("position", (0.0, 0.0))
        self._nodes[node.id] = node
        self._next_node_number = max(self._next_node_number, _suffix_after(node.id))

    def create_node(
        self,
        template: NodeFactory,
        position: Optional[Tuple[float, float]] = None,
    ) -> Node:
        node = template.instantiate(self.next_node_id())
        self.add_node(node)
        if position is not None:
            self.set_node_position(node.id, position[0], position[1])
        return node

    def remove_node(self, node_id: str) -> List[NodeConnection]:
        """
        Remove a node together with every connection that touches it.
        """

        if self._nodes.pop(node_id, None) is None:
            return []
        removed = [
            connection
            for connection in self._connections
            if node_id in (connection.source_node, connection.target_node)
        ]
        self._drop(removed)
        logger.info("Removed node %s and %d connection(s).", node_id, len(removed))
        return removed

    def get_node(self, node_id: str) -> Optional[Node]:
        return self._nodes.get(node_id)

    def nodes(self) -> Dict[str, Node]:
        return dict(self._nodes)

    def set_node_title(self, node_id: str, title: str) -> None:
        node = self._nodes.get(node_id)
        if node is not None and title.strip():
            node.title = title.strip()

    def set_node_position(self, node_id: str, x: float, y: float) -> None:
        node = self._nodes.get(node_id)
        if node is not None:
            node.config["position"] = (float(x), float(y))

    def node_position(self, node_id: str) -> Optional[Tuple[float, float]]:
        node = self._nodes.get(node_id)
        if node is not None:
            position = node.config.get("position")
            if isinstance(position, Iterable):
                items = list(position)
                if len(items) == 2:
                    return float(items[0]), float(items[1])
        return None

    def is_empty(self) -> bool:
        return not self._nodes

    def clear(self) -> None:
        self._nodes.clear()
        self._connections.clear()
        self._next_node_number = 0
        self._next_connection_number = 0

    # -- connections ---------------------------------------------------------

    def can_connect(
        self,
        source_node: str,
        source_port: int,
        target_node: str,
        target_port: int,
    ) -> Tuple[bool, Optional[str]]:
        return check_connection(
            self, ConnectionCandidate(source_node, source_port, target_node, target_port)
        )

    def connect(
        self,
        source_node: str,
        source_port: int,
        target_node: str,
        target_port: int,
    ) -> Optional[NodeConnection]:
        """
        Validate and commit a connection.

        The previous occupant of the target input is replaced. A console
        source keeps only its newest connection. Returns ``None`` and leaves
        the graph untouched when the candidate is rejected.
        """

        ok, reason = self.can_connect(source_node, source_port, target_node, target_port)
        if not ok:
            logger.debug(
                "Rejected connection %s:%s -> %s:%s: %s",
                source_node,
                source_port,
                target_node,
                target_port,
                reason,
            )
            return None

        source = self._nodes[source_node]
        if source.is_console:
            source_port = 0

        replaced = [
            connection
            for connection in self._connections
            if (connection.target_node == target_node and connection.target_port == target_port)
            or (source.is_console and connection.source_node == source_node)
        ]
        self._drop(replaced)

        connection = NodeConnection(
            id=self._next_connection_id(),
            source_node=source_node,
            source_port=source_port,
            target_node=target_node,
            target_port=target_port,
            signal_type=effective_output_type(source, source_port) or "",
        )
        self._connections.append(connection)
        return connection

    def disconnect(self, connection_id: str) -> Optional[NodeConnection]:
        connection = self.get_connection(connection_id)
        if connection is not None:
            self._drop([connection])
        return connection

    def get_connection(self, connection_id: str) -> Optional[NodeConnection]:
        for connection in self._connections:
            if connection.id == connection_id:
                return connection
        return None

    def connections(self) -> Tuple[NodeConnection, ...]:
        return tuple(self._connections)

    def connections_from(
        self, node_id: str, port: Optional[int] = None
    ) -> Tuple[NodeConnection, ...]:
        return tuple(
            connection
            for connection in self._connections
            if connection.source_node == node_id
            and (port is None or connection.source_port == port)
        )

    def connections_to(
        self, node_id: str, port: Optional[int] = None
    ) -> Tuple[NodeConnection, ...]:
        return tuple(
            connection
            for connection in self._connections
            if connection.target_node == node_id
            and (port is None or connection.target_port == port)
        )

    def restore_connection(self, connection: NodeConnection) -> None:
        """
        Insert a connection exactly as stored, without validation. Callers
        are expected to run :meth:`revalidate` once loading is complete.

        A connection without an id gets the next free one, so restore those
        after every connection that carries its own id.
        """

        if not connection.id:
            connection.id = self._next_connection_id()
        self._connections.append(connection)
        self._next_connection_number = max(
            self._next_connection_number, _suffix_after(connection.id)
        )

    # -- console output ------------------------------------------------------

    def retype_console_output(
        self, node_id: str, signal_type: str
    ) -> Tuple[bool, Optional[RetypeConflict]]:
        """
        Switch the active output of a console.

        All outgoing connections must stay compatible with the new signal,
        otherwise nothing changes and the first conflict is returned.
        """

        node = self._nodes.get(node_id)
        if node is None:
            return False, RetypeConflict(node_id, signal_type, "Node does not exist.")
        if not node.is_console:
            return False, RetypeConflict(
                node_id, signal_type, f"{node.title} does not have a selectable output."
            )

        outgoing = self.connections_from(node_id)
        for connection in outgoing:
            target = self._nodes.get(connection.target_node)
            accepted = input_type(target, connection.target_port) if target else None
            if accepted is None or not is_compatible(signal_type, accepted):
                return False, RetypeConflict(
                    node_id=node_id,
                    signal_type=signal_type,
                    reason="Incompatible downstream connection.",
                    target_node=connection.target_node,
                    target_title=target.title if target else connection.target_node,
                    target_port=connection.target_port,
                    target_type=accepted or "nothing",
                )

        offered = {normalize_signal(signal): signal for signal in available_outputs(node)}
        chosen = offered.get(normalize_signal(signal_type))
        if chosen is None:
            return False, RetypeConflict(
                node_id, signal_type, f"{node.title} has no {signal_type} output."
            )

        node.selected_output = chosen
        for connection in outgoing:
            connection.signal_type = chosen
        return True, None

    # -- scalable video switch -----------------------------------------------

    def set_svs_input_count(self, node_id: str, count: int) -> Optional[SVSConfig]:
        return self._reconfigure(node_id, configurator.set_input_count, count)

    def set_svs_output_count(self, node_id: str, count: int) -> Optional[SVSConfig]:
        return self._reconfigure(node_id, configurator.set_output_count, count)

    def set_svs_input_type(self, node_id: str, index: int, signal_type: str) -> Optional[SVSConfig]:
        return self._reconfigure(node_id, configurator.set_input_type, index, signal_type)

    def set_svs_output_type(self, node_id: str, index: int, signal_type: str) -> Optional[SVSConfig]:
        return self._reconfigure(node_id, configurator.set_output_type, index, signal_type)

    def reconcile_after_port_change(self, node_id: str) -> List[NodeConnection]:
        """
        Prune connections touching the node that no longer validate, either
        because their port is gone or because the signals stopped matching,
        and refresh the cached signal of the ones leaving it.
        """

        node = self._nodes.get(node_id)
        if node is None:
            return []

        stale: List[NodeConnection] = []
        for connection in self._connections:
            if node_id not in (connection.source_node, connection.target_node):
                continue
            ok, reason = self.can_connect(
                connection.source_node,
                connection.source_port,
                connection.target_node,
                connection.target_port,
            )
            if not ok:
                logger.info("Pruning connection %s: %s", connection.id, reason)
                stale.append(connection)
        self._drop(stale)
        if stale:
            logger.info("Pruned %d connection(s) from %s after a port change.", len(stale), node_id)

        for connection in self.connections_from(node_id):
            signal = effective_output_type(node, connection.source_port)
            if signal and normalize_signal(signal) != normalize_signal(connection.signal_type):
                connection.signal_type = signal
        return stale

    # -- consistency ---------------------------------------------------------

    def revalidate(self) -> List[NodeConnection]:
        """
        Re-check every connection against the current nodes.

        Used after loading stored diagrams: connections with unknown nodes,
        missing ports, incompatible signals or an already occupied input are
        dropped, and every cached signal is re-derived from its source.
        """

        kept: List[NodeConnection] = []
        dropped: List[NodeConnection] = []
        occupied: Set[Tuple[str, int]] = set()
        console_sources: Set[str] = set()
        seen_ids: Set[str] = set()

        for connection in self._connections:
            ok, reason = self.can_connect(
                connection.source_node,
                connection.source_port,
                connection.target_node,
                connection.target_port,
            )
            target_key = (connection.target_node, connection.target_port)
            source = self._nodes.get(connection.source_node)
            if ok and target_key in occupied:
                ok, reason = False, "input already connected"
            if ok and source is not None and source.is_console and source.id in console_sources:
                ok, reason = False, "console output already connected"
            if ok and connection.id in seen_ids:
                ok, reason = False, "duplicate connection id"
            if not ok or source is None:
                logger.warning("Dropping stored connection %s: %s", connection.id, reason)
                dropped.append(connection)
                continue

            occupied.add(target_key)
            seen_ids.add(connection.id)
            if source.is_console:
                console_sources.add(source.id)
                connection.source_port = 0
            connection.signal_type = effective_output_type(source, connection.source_port) or ""
            kept.append(connection)

        self._connections = kept
        return dropped

    def incompatible_connections(self) -> Tuple[NodeConnection, ...]:
        """
        Committed connections whose signals no longer match, for example ones
        restored from a snapshot before :meth:`revalidate` ran.
        """

        return tuple(
            connection
            for connection in self._connections
            if not self.can_connect(
                connection.source_node,
                connection.source_port,
                connection.target_node,
                connection.target_port,
            )[0]
        )

    # -- internals -----------------------------------------------------------

    def _reconfigure(self, node_id: str, operation, *args) -> Optional[SVSConfig]:
        node = self._nodes.get(node_id)
        if node is None:
            return None
        config = operation(node, *args)
        if config is not None:
            self.reconcile_after_port_change(node_id)
        return config

    def _next_connection_id(self) -> str:
        connection_id = f"{self.CONNECTION_PREFIX}{self._next_connection_number}"
        self._next_connection_number += 1
        return connection_id

    def _drop(self, connections: Sequence[NodeConnection]) -> None:
        if not connections:
            return
        ids = {id(connection) for connection in connections}
        self._connections = [
            connection for connection in self._connections if id(connection) not in ids
        ]


def _suffix_after(identifier: str) -> int:
    match = _NUMERIC_SUFFIX.search(identifier)
    return int(match.group(1)) + 1 if match else 0

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Tuple

from .base import Node
from .ports import effective_output_type, input_type
from .signals import is_compatible


@dataclass(frozen=True)
class ConnectionCandidate:
    source_node: str
    source_port: int
    target_node: str
    target_port: int


class NodeLookup(Protocol):
    def get_node(self, node_id: str) -> Optional[Node]:
        ...


def check_connection(
    graph: NodeLookup,
    candidate: ConnectionCandidate,
) -> Tuple[bool, Optional[str]]:
    """
    Decide whether ``candidate`` may become a connection in ``graph``.

    Returns ``(True, None)`` when admissible, otherwise ``(False, reason)``
    with a message suitable for the status bar. Occupied ports are not a
    reason to reject: the graph replaces the previous connection instead.
    """

    source = graph.get_node(candidate.source_node)
    target = graph.get_node(candidate.target_node)
    if source is None or target is None:
        return False, "One of the nodes does not exist."

    output_type = effective_output_type(source, candidate.source_port)
    if not output_type:
        return False, f"{source.title} has no output {candidate.source_port}."

    accepted_type = input_type(target, candidate.target_port)
    if not accepted_type:
        return False, f"{target.title} has no input {candidate.target_port}."

    if not is_compatible(output_type, accepted_type):
        return False, f"Incompatible signals: {output_type} -> {accepted_type}."

    return True, None


def is_valid_connection(graph: NodeLookup, candidate: ConnectionCandidate) -> bool:
    ok, _reason = check_connection(graph, candidate)
    return ok

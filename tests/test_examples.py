from __future__ import annotations

import pytest

from avpatch.nodes import get_ports
from avpatch.storage import DiagramStore, get_example, get_examples


@pytest.mark.parametrize("example", get_examples(), ids=lambda example: example.id)
def test_examples_load_without_dropping_connections(graph, example) -> None:
    info = DiagramStore().import_graph(graph, example.payload)

    assert info["dropped"] == []
    assert info["name"] == example.name
    assert graph.incompatible_connections() == ()
    stored = {edge["id"]: edge["signal_type"] for edge in example.payload["edges"]}
    assert {connection.id: connection.signal_type for connection in graph.connections()} == stored


def test_example_ids() -> None:
    assert [example.id for example in get_examples()] == ["simple", "medium", "advanced", "svs"]


def test_svs_example_routes_four_consoles(graph) -> None:
    DiagramStore().import_graph(graph, get_example("svs").payload)

    svs = graph.get_node("node_4")
    ports = get_ports(svs)
    assert [port.signal_type for port in ports.inputs] == ["component", "rgb", "s-video", "composite"]
    assert len(ports.outputs) == 2
    assert len(graph.connections_to("node_4")) == 4


def test_unknown_example_raises_key_error() -> None:
    with pytest.raises(KeyError):
        get_example("expert")

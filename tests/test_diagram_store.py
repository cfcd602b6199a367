from __future__ import annotations

import json

import pytest

from avpatch.nodes import get_catalog, get_ports
from avpatch.storage import DiagramFormatError, DiagramStore


def _build(graph):
    catalog = get_catalog()
    snes = graph.create_node(catalog.get("snes"), (-200.0, 40.0))
    svs = graph.create_node(catalog.get("svs"), (0.0, 0.0))
    pvm = graph.create_node(catalog.get("crt-pvm"), (240.0, 0.0))
    graph.retype_console_output(snes.id, "rgb")
    graph.set_svs_input_type(svs.id, 1, "rgb")
    graph.connect(snes.id, 0, svs.id, 1)
    graph.connect(svs.id, 0, pvm.id, 1)
    return snes, svs, pvm


def test_export_then_import_restores_the_diagram(graph) -> None:
    snes, svs, pvm = _build(graph)
    store = DiagramStore()

    payload = store.export_graph(graph, name="Desk", viewport={"x": 1.0, "y": 2.0, "zoom": 1.5})
    info = store.import_graph(graph, json.loads(json.dumps(payload)))

    assert info["name"] == "Desk"
    assert info["viewport"] == {"x": 1.0, "y": 2.0, "zoom": 1.5}
    assert info["dropped"] == []
    assert set(graph.nodes()) == {snes.id, svs.id, pvm.id}
    assert graph.get_node(snes.id).selected_output == "rgb"
    assert graph.get_node(svs.id).dynamic_config.inputs == ["component", "rgb"]
    assert graph.node_position(snes.id) == (-200.0, 40.0)
    assert [(c.source_node, c.target_node, c.signal_type) for c in graph.connections()] == [
        (snes.id, svs.id, "rgb"),
        (svs.id, pvm.id, "component"),
    ]


def test_save_and_load_file(graph, tmp_path) -> None:
    _build(graph)
    store = DiagramStore()
    path = tmp_path / "desk.json"

    store.save_graph(path, graph, name="Desk")
    graph.clear()
    info = store.load_graph(path, graph)

    assert info["name"] == "Desk"
    assert info["viewport"] is None
    assert len(graph.nodes()) == 3
    assert len(graph.connections()) == 2


def test_load_rejects_non_diagram_files(tmp_path) -> None:
    store = DiagramStore()
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    listing = tmp_path / "list.json"
    listing.write_text("[1, 2]", encoding="utf-8")

    with pytest.raises(DiagramFormatError):
        store.load(broken)
    with pytest.raises(DiagramFormatError):
        store.load(listing)


def test_import_rederives_stale_signal_types(graph) -> None:
    payload = {
        "name": "Stale",
        "nodes": [
            {
                "id": "node_0",
                "kind": "console",
                "title": "SNES",
                "selected_output": "composite",
                "static_spec": {"inputs": [], "outputs": ["rgb", "composite"]},
            },
            {"id": "node_1", "kind": "display", "title": "TV", "static_spec": {"inputs": ["composite"]}},
        ],
        "edges": [
            {"id": "edge_0", "source_node": "node_0", "source_port": 0, "target_node": "node_1",
             "target_port": 0, "signal_type": "hdmi"},
        ],
    }

    info = DiagramStore().import_graph(graph, payload)

    assert info["dropped"] == []
    assert graph.connections()[0].signal_type == "composite"


def test_import_drops_connections_that_no_longer_validate(graph) -> None:
    payload = {
        "nodes": [
            {"id": "node_0", "kind": "console", "title": "Switch", "static_spec": {"outputs": ["hdmi"]}},
            {"id": "node_1", "kind": "console", "title": "NES", "static_spec": {"outputs": ["composite"]}},
            {"id": "node_2", "kind": "display", "title": "TV", "static_spec": {"inputs": ["composite"]}},
            {"kind": "display"},
            "junk",
        ],
        "edges": [
            {"id": "edge_0", "source_node": "node_0", "source_port": 0, "target_node": "node_2", "target_port": 0},
            {"id": "edge_1", "source_node": "node_1", "source_port": 0, "target_node": "node_2", "target_port": 0},
            {"id": "edge_2", "source_node": "node_1", "source_port": 0, "target_node": "node_9", "target_port": 0},
            {"id": "edge_3", "source_node": "node_1", "target_node": "node_2"},
        ],
    }

    info = DiagramStore().import_graph(graph, payload)

    assert info["name"] == DiagramStore.DEFAULT_NAME
    assert sorted(graph.nodes()) == ["node_0", "node_1", "node_2"]
    assert [connection.id for connection in info["dropped"]] == ["edge_0", "edge_2"]
    assert [connection.id for connection in graph.connections()] == ["edge_1"]


def test_import_resets_unknown_selected_output(graph) -> None:
    payload = {
        "nodes": [
            {
                "id": "node_0",
                "kind": "console",
                "title": "NES",
                "selected_output": "hdmi",
                "static_spec": {"outputs": ["rf", "composite"]},
            }
        ],
        "edges": [],
    }

    DiagramStore().import_graph(graph, payload)

    node = graph.get_node("node_0")
    assert node.selected_output is None
    assert get_ports(node).outputs[0].signal_type == "rf"


def test_import_keeps_malformed_svs_config_and_heals_on_read(graph) -> None:
    payload = {
        "nodes": [
            {
                "id": "node_0",
                "kind": "switcher",
                "title": "SVS",
                "is_svs": True,
                "dynamic_config": {"num_inputs": 3, "num_outputs": 1, "inputs": ["rgb"], "outputs": []},
            }
        ]
    }

    DiagramStore().import_graph(graph, payload)

    ports = get_ports(graph.get_node("node_0"))
    assert [port.signal_type for port in ports.inputs] == ["component"] * 3
    assert [port.signal_type for port in ports.outputs] == ["component"]


def test_import_reseeds_identifier_counters(graph) -> None:
    payload = {
        "nodes": [
            {"id": "node_4", "kind": "console", "title": "NES", "static_spec": {"outputs": ["composite"]}},
            {"id": "node_7", "kind": "display", "title": "TV", "static_spec": {"inputs": ["composite", "composite"]}},
        ],
        "edges": [
            {"id": "edge_12", "source_node": "node_4", "source_port": 0, "target_node": "node_7", "target_port": 0},
        ],
    }

    DiagramStore().import_graph(graph, payload)

    assert graph.create_node(get_catalog().get("nes")).id == "node_8"
    graph.disconnect("edge_12")
    assert graph.connect("node_4", 0, "node_7", 1).id == "edge_13"


def test_load_rejects_files_that_are_not_utf8(tmp_path) -> None:
    path = tmp_path / "binary.json"
    path.write_bytes(b"\xff\xfe{not utf8")

    with pytest.raises(DiagramFormatError):
        DiagramStore().load(path)


@pytest.mark.parametrize(
    "payload",
    [
        {"name": "x", "nodes": 5, "edges": []},
        {"name": "x", "nodes": [], "edges": {"id": "edge_0"}},
    ],
)
def test_import_rejects_non_list_sections_and_keeps_graph(graph, payload) -> None:
    _build(graph)
    before_nodes = set(graph.nodes())
    before_edges = graph.connections()

    with pytest.raises(DiagramFormatError):
        DiagramStore().import_graph(graph, payload)

    assert set(graph.nodes()) == before_nodes
    assert graph.connections() == before_edges


def test_import_gives_unnamed_edges_fresh_ids(graph) -> None:
    payload = {
        "nodes": [
            {"id": "node_0", "kind": "console", "title": "NES", "static_spec": {"outputs": ["composite"]}},
            {"id": "node_1", "kind": "console", "title": "SNES", "static_spec": {"outputs": ["composite"]}},
            {"id": "node_2", "kind": "display", "title": "TV", "static_spec": {"inputs": ["composite", "composite"]}},
        ],
        "edges": [
            {"source_node": "node_0", "source_port": 0, "target_node": "node_2", "target_port": 0},
            {"id": "edge_0", "source_node": "node_1", "source_port": 0, "target_node": "node_2", "target_port": 1},
        ],
    }

    info = DiagramStore().import_graph(graph, payload)

    assert info["dropped"] == []
    assert sorted(connection.id for connection in graph.connections()) == ["edge_0", "edge_1"]
    assert graph.get_connection("edge_0").source_node == "node_1"
    assert graph.get_connection("edge_1").source_node == "node_0"

from __future__ import annotations

import pytest

from avpatch.nodes import NodeConnection, NodeGraph, get_catalog


@pytest.fixture
def console_to_tv(graph, make_console, make_device) -> NodeGraph:
    graph.add_node(make_console("node_0", ["rf", "composite", "s-video"], selected="composite", title="Console A"))
    graph.add_node(make_device("node_1", inputs=["composite", "hdmi"], title="Display B"))
    return graph


def test_connect_caches_signal_and_normalizes_console_port(console_to_tv) -> None:
    connection = console_to_tv.connect("node_0", 2, "node_1", 0)

    assert connection is not None
    assert connection.signal_type == "composite"
    assert connection.source_port == 0
    assert connection.id == "edge_0"
    assert console_to_tv.connections() == (connection,)


def test_rejected_connect_leaves_graph_untouched(console_to_tv) -> None:
    console_to_tv.connect("node_0", 0, "node_1", 0)
    before = console_to_tv.connections()

    assert console_to_tv.connect("node_0", 0, "node_1", 1) is None
    assert console_to_tv.connections() == before


def test_second_connection_replaces_input_occupant(graph, make_console, make_device) -> None:
    graph.add_node(make_console("a", ["composite"]))
    graph.add_node(make_console("b", ["composite"]))
    graph.add_node(make_device("tv", inputs=["composite"]))

    graph.connect("a", 0, "tv", 0)
    replacement = graph.connect("b", 0, "tv", 0)

    assert graph.connections_to("tv", 0) == (replacement,)
    assert graph.connections_from("a") == ()


def test_console_keeps_single_outgoing_connection(graph, make_console, make_device) -> None:
    graph.add_node(make_console("snes", ["composite"]))
    graph.add_node(make_device("tv1", inputs=["composite"]))
    graph.add_node(make_device("tv2", inputs=["composite"]))

    graph.connect("snes", 0, "tv1", 0)
    latest = graph.connect("snes", 0, "tv2", 0)

    assert graph.connections_from("snes") == (latest,)
    assert graph.connections_to("tv1") == ()


def test_non_console_output_can_fan_out(graph, make_device) -> None:
    graph.add_node(make_device("splitter", inputs=["scart"], outputs=["scart"]))
    graph.add_node(make_device("tv1", inputs=["scart"]))
    graph.add_node(make_device("tv2", inputs=["scart"]))

    graph.connect("splitter", 0, "tv1", 0)
    graph.connect("splitter", 0, "tv2", 0)

    assert len(graph.connections_from("splitter", 0)) == 2


def test_disconnect_removes_only_that_connection(graph, make_device) -> None:
    graph.add_node(make_device("box", outputs=["rgb", "rgb"]))
    graph.add_node(make_device("tv", inputs=["rgb", "rgb"]))
    first = graph.connect("box", 0, "tv", 0)
    second = graph.connect("box", 1, "tv", 1)

    assert graph.disconnect(first.id) is first
    assert graph.connections() == (second,)
    assert graph.disconnect("edge_missing") is None


def test_remove_node_cascades_to_connections(graph, make_console, make_device) -> None:
    graph.add_node(make_console("snes", ["composite"]))
    graph.add_node(make_device("switch", inputs=["composite"], outputs=["composite"]))
    graph.add_node(make_device("tv", inputs=["composite"]))
    graph.connect("snes", 0, "switch", 0)
    graph.connect("switch", 0, "tv", 0)

    removed = graph.remove_node("switch")

    assert len(removed) == 2
    assert graph.connections() == ()
    assert graph.get_node("switch") is None
    assert graph.remove_node("switch") == []


def test_retype_updates_selected_output_and_cached_types(graph, make_console, make_device) -> None:
    graph.add_node(make_console("snes", ["rgb", "composite", "s-video"], selected="composite"))
    graph.add_node(make_device("tv", inputs=["scart"]))
    connection = graph.connect("snes", 0, "tv", 0)

    ok, conflict = graph.retype_console_output("snes", "RGB")

    assert (ok, conflict) == (True, None)
    assert graph.get_node("snes").selected_output == "rgb"
    assert connection.signal_type == "rgb"


def test_retype_is_all_or_nothing(console_to_tv) -> None:
    connection = console_to_tv.connect("node_0", 0, "node_1", 0)

    ok, conflict = console_to_tv.retype_console_output("node_0", "rf")

    assert ok is False
    assert conflict.target_node == "node_1"
    assert conflict.target_title == "Display B"
    assert conflict.target_port == 0
    assert conflict.target_type == "composite"
    assert "Display B" in conflict.message
    assert console_to_tv.get_node("node_0").selected_output == "composite"
    assert console_to_tv.connections() == (connection,)
    assert connection.signal_type == "composite"


def test_retype_rejects_unknown_output_and_non_consoles(graph, make_console, make_device) -> None:
    graph.add_node(make_console("nes", ["rf", "composite"]))
    graph.add_node(make_device("tv", inputs=["composite"]))

    ok, conflict = graph.retype_console_output("nes", "rgb")
    assert ok is False
    assert conflict.target_node is None
    assert graph.get_node("nes").selected_output is None

    ok, conflict = graph.retype_console_output("tv", "composite")
    assert ok is False

    ok, conflict = graph.retype_console_output("ghost", "composite")
    assert ok is False
    assert conflict.message == "Node does not exist."


def test_end_to_end_console_retype_scenario(console_to_tv) -> None:
    connection = console_to_tv.connect("node_0", 0, "node_1", 0)
    assert connection is not None
    assert connection.signal_type == "composite"

    ok, conflict = console_to_tv.retype_console_output("node_0", "hdmi")

    assert ok is False
    assert conflict.target_type == "composite"
    assert console_to_tv.get_node("node_0").selected_output == "composite"
    assert connection.signal_type == "composite"


def test_shrinking_svs_prunes_out_of_range_connections(graph, make_console, make_svs, make_device) -> None:
    graph.add_node(make_svs("svs", inputs=("component", "component", "rgb"), outputs=("component", "rgb")))
    graph.add_node(make_console("ps2", ["component"]))
    graph.add_node(make_console("genesis", ["rgb"]))
    graph.add_node(make_device("pvm", inputs=["component", "rgb"]))
    kept = graph.connect("ps2", 0, "svs", 0)
    graph.connect("genesis", 0, "svs", 2)
    graph.connect("svs", 1, "pvm", 1)

    graph.set_svs_input_count("svs", 2)
    graph.set_svs_output_count("svs", 1)

    assert graph.connections() == (kept,)


def test_svs_output_retype_refreshes_cached_type_and_prunes_mismatches(graph, make_svs, make_device) -> None:
    graph.add_node(make_svs("svs", outputs=("component",)))
    graph.add_node(make_device("ossc", inputs=["scart"], outputs=["hdmi"]))
    graph.add_node(make_device("pvm", inputs=["component"]))
    to_ossc = graph.connect("svs", 0, "ossc", 0)
    to_pvm = graph.connect("svs", 0, "pvm", 0)

    graph.set_svs_output_type("svs", 0, "rgb")

    assert to_ossc.signal_type == "rgb"
    assert graph.connections() == (to_ossc,)
    assert to_pvm not in graph.connections()
    assert graph.incompatible_connections() == ()


def test_svs_input_retype_prunes_feed_and_frees_console(graph, make_console, make_svs) -> None:
    graph.add_node(make_console("console", ["composite", "rgb"], selected="composite"))
    graph.add_node(make_svs("svs", inputs=("composite",)))
    feed = graph.connect("console", 0, "svs", 0)

    graph.set_svs_input_type("svs", 0, "hdmi")

    assert feed not in graph.connections()
    assert graph.retype_console_output("console", "composite") == (True, None)
    assert graph.retype_console_output("console", "rgb") == (True, None)


def test_port_edits_match_what_a_reload_keeps(graph, make_svs, make_device) -> None:
    graph.add_node(make_svs("svs", outputs=("component",)))
    graph.add_node(make_device("pvm", inputs=["component"]))
    graph.connect("svs", 0, "pvm", 0)

    graph.set_svs_output_type("svs", 0, "hdmi")
    remaining = graph.connections()

    assert graph.revalidate() == []
    assert graph.connections() == remaining == ()


def test_svs_wrappers_ignore_non_svs_nodes(graph, make_device) -> None:
    graph.add_node(make_device("tv", inputs=["composite"]))

    assert graph.set_svs_input_count("tv", 4) is None
    assert graph.set_svs_input_count("ghost", 4) is None


def test_node_ids_are_monotonic_and_reseeded(graph) -> None:
    template = get_catalog().get("crt-tv")

    first = graph.create_node(template, (10.0, 20.0))
    second = graph.create_node(template)

    assert (first.id, second.id) == ("node_0", "node_1")
    assert graph.node_position("node_0") == (10.0, 20.0)

    graph.remove_node("node_1")
    assert graph.create_node(template).id == "node_2"

    graph.add_node(template.instantiate("node_9"))
    assert graph.next_node_id() == "node_10"

    graph.clear()
    assert graph.is_empty()
    assert graph.next_node_id() == "node_0"


def test_duplicate_node_id_is_refused(graph, make_device) -> None:
    graph.add_node(make_device("tv"))

    with pytest.raises(ValueError):
        graph.add_node(make_device("tv"))


def test_revalidate_drops_invalid_and_rederives_types(graph, make_console, make_device) -> None:
    graph.add_node(make_console("snes", ["composite", "rf"], selected="composite"))
    graph.add_node(make_console("nes", ["rf"]))
    graph.add_node(make_device("tv", inputs=["composite", "rf"]))
    graph.restore_connection(NodeConnection("edge_0", "snes", 3, "tv", 0, "hdmi"))
    graph.restore_connection(NodeConnection("edge_1", "nes", 0, "tv", 0, "rf"))
    graph.restore_connection(NodeConnection("edge_5", "snes", 0, "tv", 1, "composite"))
    graph.restore_connection(NodeConnection("edge_6", "ghost", 0, "tv", 1, "rf"))

    dropped = graph.revalidate()

    assert [connection.id for connection in dropped] == ["edge_1", "edge_5", "edge_6"]
    (survivor,) = graph.connections()
    assert survivor.id == "edge_0"
    assert survivor.source_port == 0
    assert survivor.signal_type == "composite"
    assert graph.connect("nes", 0, "tv", 1).id == "edge_7"

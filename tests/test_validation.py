from __future__ import annotations

from avpatch.nodes import ConnectionCandidate, check_connection, is_valid_connection


def test_missing_node_is_rejected(graph, make_device) -> None:
    graph.add_node(make_device("tv", inputs=["composite"]))

    ok, reason = check_connection(graph, ConnectionCandidate("ghost", 0, "tv", 0))

    assert ok is False
    assert reason == "One of the nodes does not exist."


def test_missing_ports_are_rejected(graph, make_device) -> None:
    graph.add_node(make_device("tv", inputs=["composite"], title="CRT"))
    graph.add_node(make_device("box", inputs=["rgb"], outputs=["scart"], title="Box"))

    ok, reason = check_connection(graph, ConnectionCandidate("tv", 0, "box", 0))
    assert ok is False
    assert reason == "CRT has no output 0."

    ok, reason = check_connection(graph, ConnectionCandidate("box", 0, "tv", 2))
    assert ok is False
    assert reason == "CRT has no input 2."


def test_incompatible_signals_are_reported(graph, make_console, make_device) -> None:
    graph.add_node(make_console("switch", ["hdmi"]))
    graph.add_node(make_device("tv", inputs=["composite"]))

    ok, reason = check_connection(graph, ConnectionCandidate("switch", 0, "tv", 0))

    assert ok is False
    assert reason == "Incompatible signals: hdmi -> composite."


def test_console_source_index_is_ignored(graph, make_console, make_device) -> None:
    graph.add_node(make_console("snes", ["rgb", "composite"], selected="composite"))
    graph.add_node(make_device("tv", inputs=["rf", "composite"]))

    assert is_valid_connection(graph, ConnectionCandidate("snes", 7, "tv", 1)) is True
    assert is_valid_connection(graph, ConnectionCandidate("snes", 0, "tv", 0)) is False


def test_occupied_input_is_not_a_rejection(graph, make_console, make_device) -> None:
    graph.add_node(make_console("a", ["composite"]))
    graph.add_node(make_console("b", ["composite"]))
    graph.add_node(make_device("tv", inputs=["composite"]))
    graph.connect("a", 0, "tv", 0)

    assert is_valid_connection(graph, ConnectionCandidate("b", 0, "tv", 0)) is True

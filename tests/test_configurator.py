from __future__ import annotations

from avpatch.nodes import configurator


def test_growing_inputs_keeps_existing_types_and_pads_with_default(make_svs) -> None:
    node = make_svs("svs", inputs=("rgb", "s-video"))

    config = configurator.set_input_count(node, 5)

    assert config.num_inputs == 5
    assert config.inputs == ["rgb", "s-video", "component", "component", "component"]
    assert node.dynamic_config is config


def test_shrinking_inputs_discards_trailing_types(make_svs) -> None:
    node = make_svs("svs", inputs=("rgb", "s-video", "composite", "scart", "vga"))

    config = configurator.set_input_count(node, 2)

    assert config.inputs == ["rgb", "s-video"]

    regrown = configurator.set_input_count(node, 3)
    assert regrown.inputs == ["rgb", "s-video", "component"]


def test_counts_clamp_to_node_ceiling(make_svs) -> None:
    node = make_svs("svs", max_inputs=8, max_outputs=2)

    assert configurator.set_input_count(node, 100).num_inputs == 8
    assert configurator.set_input_count(node, 0).num_inputs == 1
    assert configurator.set_output_count(node, 5).num_outputs == 2


def test_counts_use_default_ceiling_when_undeclared(make_svs) -> None:
    node = make_svs("svs")

    assert configurator.set_input_count(node, 99).num_inputs == 32
    assert configurator.set_output_count(node, 99).num_outputs == 6


def test_setting_a_type_replaces_only_that_port(make_svs) -> None:
    node = make_svs("svs", inputs=("component", "component", "component"))

    config = configurator.set_input_type(node, 1, "RGB")

    assert config.inputs == ["component", "rgb", "component"]


def test_out_of_range_type_change_is_a_no_op(make_svs) -> None:
    node = make_svs("svs", outputs=("component",))

    config = configurator.set_output_type(node, 4, "rgb")

    assert config.outputs == ["component"]
    assert configurator.set_output_type(node, -1, "rgb").outputs == ["component"]


def test_configurator_heals_missing_config_first(make_svs) -> None:
    node = make_svs("svs", inputs=None, outputs=None)

    config = configurator.set_output_type(node, 0, "hdmi")

    assert config.num_inputs == 1
    assert config.outputs == ["hdmi"]


def test_non_svs_nodes_are_left_alone(make_device) -> None:
    node = make_device("tv", inputs=["composite"])

    assert configurator.set_input_count(node, 3) is None
    assert node.dynamic_config is None
    assert node.static_spec.inputs == ["composite"]

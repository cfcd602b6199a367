from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from avpatch.config import DEFAULT_SVS_MAX_INPUTS, DEFAULT_SVS_MAX_OUTPUTS

from .base import Node, NodePortDirection, PortSpec, SVSConfig
from .signals import DEFAULT_SVS_SIGNAL, normalize_signal


@dataclass
class NodePorts:
    inputs: List[PortSpec] = field(default_factory=list)
    outputs: List[PortSpec] = field(default_factory=list)


def input_ceiling(node: Node) -> int:
    return _ceiling(node.max_inputs, DEFAULT_SVS_MAX_INPUTS)


def output_ceiling(node: Node) -> int:
    return _ceiling(node.max_outputs, DEFAULT_SVS_MAX_OUTPUTS)


def clamp_count(value: object, ceiling: int) -> int:
    try:
        count = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        count = 1
    return max(1, min(ceiling, count))


def normalize_svs_config(node: Node) -> SVSConfig:
    """
    Return a well-formed copy of the node's SVS configuration.

    Counts are clamped to ``[1, ceiling]``. A missing array, or one whose
    length disagrees with its count, is replaced by an array of the right
    length filled with the default signal. The node itself is not modified.
    """

    config = node.dynamic_config
    raw_inputs = config.num_inputs if config is not None else 1
    raw_outputs = config.num_outputs if config is not None else 1
    num_inputs = clamp_count(raw_inputs, input_ceiling(node))
    num_outputs = clamp_count(raw_outputs, output_ceiling(node))

    inputs = _heal(config.inputs if config is not None else None, num_inputs)
    outputs = _heal(config.outputs if config is not None else None, num_outputs)
    return SVSConfig(
        num_inputs=num_inputs,
        num_outputs=num_outputs,
        inputs=inputs,
        outputs=outputs,
    )


def available_outputs(node: Node) -> List[str]:
    """
    Output types a console can switch between (its full static output list).
    """

    if node.static_spec is None:
        return []
    return [signal for signal in node.static_spec.outputs if normalize_signal(signal)]


def console_output(node: Node) -> Optional[str]:
    if node.selected_output:
        return node.selected_output
    outputs = available_outputs(node)
    return outputs[0] if outputs else None


def get_ports(node: Node) -> NodePorts:
    """
    Derive the ordered input and output ports of a node.
    """

    if node.is_svs:
        config = normalize_svs_config(node)
        return NodePorts(
            inputs=_build(config.inputs, NodePortDirection.INPUT),
            outputs=_build(config.outputs, NodePortDirection.OUTPUT),
        )

    spec = node.static_spec
    inputs = list(spec.inputs) if spec is not None else []
    if node.is_console:
        selected = console_output(node)
        outputs = [selected] if selected else []
    else:
        outputs = list(spec.outputs) if spec is not None else []

    return NodePorts(
        inputs=_build(inputs, NodePortDirection.INPUT),
        outputs=_build(outputs, NodePortDirection.OUTPUT),
    )


def effective_output_type(node: Node, index: int) -> Optional[str]:
    """
    Signal leaving ``node`` through output ``index``. Consoles always report
    their single selected output regardless of the index.
    """

    outputs = get_ports(node).outputs
    if node.is_console:
        return outputs[0].signal_type if outputs else None
    return _port_type(outputs, index)


def input_type(node: Node, index: int) -> Optional[str]:
    return _port_type(get_ports(node).inputs, index)


def _port_type(ports: Sequence[PortSpec], index: int) -> Optional[str]:
    if not isinstance(index, int) or index < 0 or index >= len(ports):
        return None
    signal = ports[index].signal_type
    return signal if normalize_signal(signal) else None


def _build(signals: Sequence[str], direction: NodePortDirection) -> List[PortSpec]:
    return [
        PortSpec(index=index, direction=direction, signal_type=signal)
        for index, signal in enumerate(signals)
    ]


def _heal(signals: Optional[Sequence[Optional[str]]], count: int) -> List[str]:
    if signals is None or len(signals) != count:
        return [DEFAULT_SVS_SIGNAL] * count
    return [signal if normalize_signal(signal) else DEFAULT_SVS_SIGNAL for signal in signals]


def _ceiling(value: Optional[int], default: int) -> int:
    try:
        ceiling = int(value) if value is not None else default
    except (TypeError, ValueError):
        ceiling = default
    return max(1, ceiling)

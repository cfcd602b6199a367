from __future__ import annotations

import logging
from typing import Optional

from .base import Node, SVSConfig
from .ports import clamp_count, input_ceiling, normalize_svs_config, output_ceiling
from .signals import DEFAULT_SVS_SIGNAL, normalize_signal

logger = logging.getLogger(__name__)

# These helpers only reshape a node's SVS configuration. Connections are not
# touched here, so callers that own a graph should go through the
# NodeGraph.set_svs_* wrappers, which reconcile connections afterwards.


def set_input_count(node: Node, count: int) -> Optional[SVSConfig]:
    config = _editable_config(node)
    if config is None:
        return None
    config.num_inputs = clamp_count(count, input_ceiling(node))
    config.inputs = _resize(config.inputs, config.num_inputs)
    node.dynamic_config = config
    return config


def set_output_count(node: Node, count: int) -> Optional[SVSConfig]:
    config = _editable_config(node)
    if config is None:
        return None
    config.num_outputs = clamp_count(count, output_ceiling(node))
    config.outputs = _resize(config.outputs, config.num_outputs)
    node.dynamic_config = config
    return config


def set_input_type(node: Node, index: int, signal_type: str) -> Optional[SVSConfig]:
    config = _editable_config(node)
    if config is None:
        return None
    if not _set_entry(config.inputs, index, signal_type):
        logger.debug("Ignoring input type change on %s: no input %s.", node.id, index)
    node.dynamic_config = config
    return config


def set_output_type(node: Node, index: int, signal_type: str) -> Optional[SVSConfig]:
    config = _editable_config(node)
    if config is None:
        return None
    if not _set_entry(config.outputs, index, signal_type):
        logger.debug("Ignoring output type change on %s: no output %s.", node.id, index)
    node.dynamic_config = config
    return config


def _editable_config(node: Node) -> Optional[SVSConfig]:
    if not node.is_svs:
        logger.warning("Node %s is not a Scalable Video Switch; port layout is fixed.", node.id)
        return None
    return normalize_svs_config(node)


def _resize(signals: list[str], count: int) -> list[str]:
    if len(signals) >= count:
        return signals[:count]
    return signals + [DEFAULT_SVS_SIGNAL] * (count - len(signals))


def _set_entry(signals: list[str], index: int, signal_type: str) -> bool:
    label = normalize_signal(signal_type)
    if not label or not isinstance(index, int) or not 0 <= index < len(signals):
        return False
    signals[index] = label
    return True

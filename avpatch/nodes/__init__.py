""
"Equipment graph primitives: signal rules, ports and the connection graph."
""

from .base import Node, NodeKind, NodePortDirection, PortSpec, StaticSpec, SVSConfig
from .catalog import Catalog, EquipmentTemplate, get_catalog, load_catalog
from .graph import NodeConnection, NodeGraph, RetypeConflict
from .ports import NodePorts, get_ports, normalize_svs_config
from .signals import is_compatible, signal_color
from .validation import ConnectionCandidate, check_connection, is_valid_connection

__all__ = [
    "Catalog",
    "ConnectionCandidate",
    "EquipmentTemplate",
    "Node",
    "NodeConnection",
    "NodeGraph",
    "NodeKind",
    "NodePortDirection",
    "NodePorts",
    "PortSpec",
    "RetypeConflict",
    "StaticSpec",
    "SVSConfig",
    "check_connection",
    "get_catalog",
    "get_ports",
    "is_compatible",
    "is_valid_connection",
    "load_catalog",
    "normalize_svs_config",
    "signal_color",
]

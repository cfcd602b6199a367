from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, List, Optional


class NodePortDirection(Enum):
    INPUT = auto()
    OUTPUT = auto()


class NodeKind(str, Enum):
    CONSOLE = "console"
    SWITCHER = "switcher"
    DISPLAY = "display"
    ADAPTER = "adapter"
    UPSCALER = "upscaler"

    @classmethod
    def coerce(cls, value: object) -> "NodeKind":
        """
        Map a catalog category onto a node kind. Unknown categories (cables,
        converters and the like) behave as adapters.
        """

        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return cls.ADAPTER


@dataclass
class PortSpec:
    """
    A single typed connection point on a node.
    """

    index: int
    direction: NodePortDirection
    signal_type: str

    @property
    def handle(self) -> str:
        prefix = "in" if self.direction == NodePortDirection.INPUT else "out"
        return f"{prefix}-{self.index}"


@dataclass
class StaticSpec:
    inputs: List[str] = field(default_factory=list)
    outputs: List[str] = field(default_factory=list)


@dataclass
class SVSConfig:
    """
    Port layout of a Scalable Video Switch.

    ``inputs`` always holds ``num_inputs`` entries and ``outputs`` holds
    ``num_outputs`` entries once the configurator has touched it.
    """

    num_inputs: int = 1
    num_outputs: int = 1
    inputs: List[str] = field(default_factory=list)
    outputs: List[str] = field(default_factory=list)

    def copy(self) -> "SVSConfig":
        return SVSConfig(
            num_inputs=self.num_inputs,
            num_outputs=self.num_outputs,
            inputs=list(self.inputs),
            outputs=list(self.outputs),
        )


@dataclass
class Node:
    """
    A piece of equipment placed on the canvas.
    """

    id: str
    kind: NodeKind
    title: str
    is_svs: bool = False
    static_spec: Optional[StaticSpec] = None
    dynamic_config: Optional[SVSConfig] = None
    selected_output: Optional[str] = None
    max_inputs: Optional[int] = None
    max_outputs: Optional[int] = None
    template_id: Optional[str] = None
    signals: List[str] = field(default_factory=list)
    config: Dict[str, object] = field(default_factory=dict)

    @property
    def is_console(self) -> bool:
        return self.kind == NodeKind.CONSOLE and not self.is_svs

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple


@dataclass(frozen=True)
class DiagramExample:
    id: str
    name: str
    description: str
    payload: Dict[str, object]


def _node(
    node_id: str,
    kind: str,
    title: str,
    position: Tuple[float, float],
    *,
    template_id: str,
    inputs: Sequence[str] = (),
    outputs: Sequence[str] = (),
    selected_output: Optional[str] = None,
) -> Dict[str, object]:
    return {
        "id": node_id,
        "kind": kind,
        "title": title,
        "template_id": template_id,
        "is_svs": False,
        "selected_output": selected_output,
        "static_spec": {"inputs": list(inputs), "outputs": list(outputs)},
        "position": list(position),
    }


def _edge(
    edge_id: str,
    source: str,
    source_port: int,
    target: str,
    target_port: int,
    signal_type: str,
) -> Dict[str, object]:
    return {
        "id": edge_id,
        "source_node": source,
        "source_port": source_port,
        "target_node": target,
        "target_port": target_port,
        "signal_type": signal_type,
    }


_SNES_OUTPUTS = ("rgb", "s-video", "composite", "rf")
_CRT_TV_INPUTS = ("rf", "composite", "s-video")


_SIMPLE = DiagramExample(
    id="simple",
    name="Simple Setup",
    description="Basic console to display connection.",
    payload={
        "version": 1,
        "name": "Simple Setup",
        "nodes": [
            _node(
                "node_0",
                "console",
                "Super Nintendo",
                (-240, 0),
                template_id="snes",
                outputs=_SNES_OUTPUTS,
                selected_output="composite",
            ),
            _node("node_1", "display", "Consumer CRT TV", (120, 0), template_id="crt-tv", inputs=_CRT_TV_INPUTS),
        ],
        "edges": [_edge("edge_0", "node_0", 0, "node_1", 1, "composite")],
    },
)


_MEDIUM = DiagramExample(
    id="medium",
    name="Medium Setup",
    description="Multiple consoles through a switcher.",
    payload={
        "version": 1,
        "name": "Medium Setup",
        "nodes": [
            _node(
                "node_0",
                "console",
                "Nintendo 64",
                (-420, -100),
                template_id="n64",
                outputs=("s-video", "composite", "rf"),
                selected_output="s-video",
            ),
            _node(
                "node_1",
                "console",
                "GameCube",
                (-420, 100),
                template_id="gamecube",
                outputs=("component", "s-video", "composite"),
                selected_output="s-video",
            ),
            _node(
                "node_2",
                "switcher",
                "S-Video Switch 3x1",
                (-80, 0),
                template_id="svideo-switch",
                inputs=("s-video", "s-video", "s-video"),
                outputs=("s-video",),
            ),
            _node("node_3", "display", "Consumer CRT TV", (260, 0), template_id="crt-tv", inputs=_CRT_TV_INPUTS),
        ],
        "edges": [
            _edge("edge_0", "node_0", 0, "node_2", 0, "s-video"),
            _edge("edge_1", "node_1", 0, "node_2", 1, "s-video"),
            _edge("edge_2", "node_2", 0, "node_3", 2, "s-video"),
        ],
    },
)


_ADVANCED = DiagramExample(
    id="advanced",
    name="Advanced Setup",
    description="Complex multi-switcher routing system.",
    payload={
        "version": 1,
        "name": "Advanced Setup",
        "nodes": [
            _node(
                "node_0",
                "console",
                "Super Nintendo",
                (-760, -160),
                template_id="snes",
                outputs=_SNES_OUTPUTS,
                selected_output="rgb",
            ),
            _node(
                "node_1",
                "console",
                "Sega Genesis",
                (-760, 0),
                template_id="genesis",
                outputs=("rgb", "composite", "rf"),
                selected_output="rgb",
            ),
            _node(
                "node_2",
                "adapter",
                "RGB to SCART Cable",
                (-520, -160),
                template_id="rgb-to-scart",
                inputs=("rgb",),
                outputs=("scart",),
            ),
            _node(
                "node_3",
                "adapter",
                "RGB to SCART Cable",
                (-520, 0),
                template_id="rgb-to-scart",
                inputs=("rgb",),
                outputs=("scart",),
            ),
            _node(
                "node_4",
                "switcher",
                "SCART Switch 4x1",
                (-280, -80),
                template_id="scart-switch",
                inputs=("scart", "scart", "scart", "scart"),
                outputs=("scart",),
            ),
            _node(
                "node_5",
                "upscaler",
                "OSSC",
                (-40, -80),
                template_id="ossc",
                inputs=("scart", "component", "vga"),
                outputs=("hdmi",),
            ),
            _node(
                "node_6",
                "console",
                "Nintendo Switch",
                (-40, 120),
                template_id="switch",
                outputs=("hdmi",),
                selected_output="hdmi",
            ),
            _node(
                "node_7",
                "switcher",
                "HDMI Switch 5x1",
                (200, 0),
                template_id="hdmi-switch",
                inputs=("hdmi", "hdmi", "hdmi", "hdmi", "hdmi"),
                outputs=("hdmi",),
            ),
            _node(
                "node_8",
                "display",
                "Modern HDTV",
                (440, 0),
                template_id="hdtv",
                inputs=("hdmi", "hdmi", "hdmi", "component", "composite"),
            ),
        ],
        "edges": [
            _edge("edge_0", "node_0", 0, "node_2", 0, "rgb"),
            _edge("edge_1", "node_1", 0, "node_3", 0, "rgb"),
            _edge("edge_2", "node_2", 0, "node_4", 0, "scart"),
            _edge("edge_3", "node_3", 0, "node_4", 1, "scart"),
            _edge("edge_4", "node_4", 0, "node_5", 0, "scart"),
            _edge("edge_5", "node_5", 0, "node_7", 0, "hdmi"),
            _edge("edge_6", "node_6", 0, "node_7", 1, "hdmi"),
            _edge("edge_7", "node_7", 0, "node_8", 0, "hdmi"),
        ],
    },
)


_SVS = DiagramExample(
    id="svs",
    name="SVS Setup",
    description="Scalable Video Switch with multiple consoles.",
    payload={
        "version": 1,
        "name": "SVS Setup",
        "nodes": [
            _node(
                "node_0",
                "console",
                "PlayStation 2",
                (-480, -240),
                template_id="ps2",
                outputs=("component", "rgb", "s-video", "composite"),
                selected_output="component",
            ),
            _node(
                "node_1",
                "console",
                "Sega Genesis",
                (-480, -80),
                template_id="genesis",
                outputs=("rgb", "composite", "rf"),
                selected_output="rgb",
            ),
            _node(
                "node_2",
                "console",
                "Nintendo 64",
                (-480, 80),
                template_id="n64",
                outputs=("s-video", "composite", "rf"),
                selected_output="s-video",
            ),
            _node(
                "node_3",
                "console",
                "NES",
                (-480, 240),
                template_id="nes",
                outputs=("rf", "composite"),
                selected_output="composite",
            ),
            {
                "id": "node_4",
                "kind": "switcher",
                "title": "Scalable Video Switch",
                "template_id": "svs",
                "is_svs": True,
                "selected_output": None,
                "dynamic_config": {
                    "num_inputs": 4,
                    "num_outputs": 2,
                    "inputs": ["component", "rgb", "s-video", "composite"],
                    "outputs": ["component", "rgb"],
                },
                "max_inputs": 32,
                "max_outputs": 6,
                "position": [-120, 0],
            },
            _node(
                "node_5",
                "display",
                "Sony PVM CRT",
                (240, 0),
                template_id="crt-pvm",
                inputs=("rgb", "component", "s-video", "composite", "bnc"),
            ),
        ],
        "edges": [
            _edge("edge_0", "node_0", 0, "node_4", 0, "component"),
            _edge("edge_1", "node_1", 0, "node_4", 1, "rgb"),
            _edge("edge_2", "node_2", 0, "node_4", 2, "s-video"),
            _edge("edge_3", "node_3", 0, "node_4", 3, "composite"),
            _edge("edge_4", "node_4", 0, "node_5", 1, "component"),
            _edge("edge_5", "node_4", 1, "node_5", 0, "rgb"),
        ],
    },
)


_EXAMPLES: Tuple[DiagramExample, ...] = (_SIMPLE, _MEDIUM, _ADVANCED, _SVS)


def get_examples() -> Tuple[DiagramExample, ...]:
    return _EXAMPLES


def get_example(example_id: str) -> DiagramExample:
    for example in _EXAMPLES:
        if example.id == example_id:
            return example
    raise KeyError(example_id)

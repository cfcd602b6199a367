"""Pytest configuration.

Adds the repository root to sys.path so `from avpatch...` works without an
editable install, and provides small node factories shared by the tests.
"""

from __future__ import annotations

import os
import sys
from typing import Optional, Sequence

import pytest


ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from avpatch.nodes import Node, NodeGraph, NodeKind, StaticSpec, SVSConfig  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_config_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("AVPATCH_CONFIG_DIR", str(tmp_path / "config"))


@pytest.fixture
def graph() -> NodeGraph:
    return NodeGraph()


@pytest.fixture
def make_console():
    def factory(
        node_id: str,
        outputs: Sequence[str],
        selected: Optional[str] = None,
        title: Optional[str] = None,
    ) -> Node:
        return Node(
            id=node_id,
            kind=NodeKind.CONSOLE,
            title=title or node_id,
            static_spec=StaticSpec(inputs=[], outputs=list(outputs)),
            selected_output=selected,
        )

    return factory


@pytest.fixture
def make_device():
    def factory(
        node_id: str,
        inputs: Sequence[str] = (),
        outputs: Sequence[str] = (),
        kind: NodeKind = NodeKind.DISPLAY,
        title: Optional[str] = None,
    ) -> Node:
        return Node(
            id=node_id,
            kind=kind,
            title=title or node_id,
            static_spec=StaticSpec(inputs=list(inputs), outputs=list(outputs)),
        )

    return factory


@pytest.fixture
def make_svs():
    def factory(
        node_id: str,
        inputs: Optional[Sequence[str]] = ("component", "component"),
        outputs: Optional[Sequence[str]] = ("component",),
        max_inputs: Optional[int] = None,
        max_outputs: Optional[int] = None,
    ) -> Node:
        config = None
        if inputs is not None and outputs is not None:
            config = SVSConfig(
                num_inputs=len(inputs),
                num_outputs=len(outputs),
                inputs=list(inputs),
                outputs=list(outputs),
            )
        return Node(
            id=node_id,
            kind=NodeKind.SWITCHER,
            title=node_id,
            is_svs=True,
            dynamic_config=config,
            max_inputs=max_inputs,
            max_outputs=max_outputs,
        )

    return factory

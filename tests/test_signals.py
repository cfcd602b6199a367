from __future__ import annotations

import pytest

from avpatch.nodes import is_compatible, signal_color
from avpatch.nodes.signals import FALLBACK_SIGNAL_COLOR, KNOWN_SIGNALS, SIGNAL_COLORS


@pytest.mark.parametrize("signal", KNOWN_SIGNALS)
def test_every_known_signal_mates_with_itself(signal: str) -> None:
    assert is_compatible(signal, signal) is True


def test_hdmi_only_mates_with_hdmi() -> None:
    assert is_compatible("hdmi", "hdmi") is True
    assert is_compatible("hdmi", "component") is False
    assert is_compatible("composite", "hdmi") is False


def test_rf_only_mates_with_rf() -> None:
    assert is_compatible("rf", "rf") is True
    assert is_compatible("rf", "composite") is False
    assert is_compatible("scart", "rf") is False


@pytest.mark.parametrize(
    "output_type, input_type",
    [
        ("component", "composite"),
        ("component", "rca"),
        ("component", "s-video"),
        ("s-video", "component"),
        ("composite", "s-video"),
        ("s-video", "rca"),
        ("rgb", "component"),
        ("component", "rgb"),
    ],
)
def test_excluded_analog_pairs_in_both_directions(output_type: str, input_type: str) -> None:
    assert is_compatible(output_type, input_type) is False


def test_unlisted_analog_pairings_are_allowed() -> None:
    assert is_compatible("component", "scart") is True
    assert is_compatible("rgb", "scart") is True
    assert is_compatible("composite", "rca") is True
    assert is_compatible("foo", "bar") is True


def test_labels_are_compared_without_case() -> None:
    assert is_compatible("HDMI", "hdmi") is True
    assert is_compatible(" Component ", "S-Video") is False
    assert is_compatible("RF", "Composite") is False


def test_unknown_label_against_hdmi_is_rejected() -> None:
    assert is_compatible("hdmi", "mystery") is False


def test_signal_color_lookup_and_fallback() -> None:
    assert signal_color("HDMI") == SIGNAL_COLORS["hdmi"]
    assert signal_color("mystery") == FALLBACK_SIGNAL_COLOR
    assert signal_color(None) == FALLBACK_SIGNAL_COLOR

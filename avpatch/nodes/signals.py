from __future__ import annotations

from typing import Dict, Optional, Tuple

DIGITAL_SIGNAL = "hdmi"
RF_SIGNAL = "rf"
DEFAULT_SVS_SIGNAL = "component"

KNOWN_SIGNALS: Tuple[str, ...] = (
    "hdmi",
    "scart",
    "rgb",
    "component",
    "s-video",
    "composite",
    "rca",
    "vga",
    "bnc",
    "rf",
)

# Pairs that can never share a cable, checked in both directions.
_INCOMPATIBLE_ANALOG: Tuple[Tuple[str, frozenset[str]], ...] = (
    ("component", frozenset({"composite", "rca", "s-video"})),
    ("s-video", frozenset({"composite", "rca"})),
    ("rgb", frozenset({"component"})),
)

SIGNAL_COLORS: Dict[str, str] = {
    "hdmi": "#7aa2f7",
    "scart": "#e0af68",
    "rgb": "#f7768e",
    "component": "#9ece6a",
    "s-video": "#bb9af7",
    "composite": "#ffcc66",
    "rca": "#ff9e64",
    "vga": "#2ac3de",
    "bnc": "#73daca",
    "rf": "#c0caf5",
}
FALLBACK_SIGNAL_COLOR = "#9aa5b1"


def normalize_signal(signal: Optional[str]) -> str:
    """
    Return the canonical (stripped, lower-case) form of a signal label.
    """

    return str(signal or "").strip().lower()


def is_compatible(output_type: Optional[str], input_type: Optional[str]) -> bool:
    """
    Decide whether an output carrying ``output_type`` may feed an input
    accepting ``input_type``.

    Labels are compared case-insensitively. Anything not explicitly excluded
    is allowed, since unlisted analog pairings usually work through a passive
    adapter.
    """

    source = normalize_signal(output_type)
    target = normalize_signal(input_type)

    if source == target:
        return True

    if (source == DIGITAL_SIGNAL) != (target == DIGITAL_SIGNAL):
        return False

    if RF_SIGNAL in (source, target):
        return False

    for signal, excluded in _INCOMPATIBLE_ANALOG:
        if source == signal and target in excluded:
            return False
        if target == signal and source in excluded:
            return False

    return True


def signal_color(signal: Optional[str]) -> str:
    """
    Look up the display colour used for cables and ports of a signal type.
    """

    return SIGNAL_COLORS.get(normalize_signal(signal), FALLBACK_SIGNAL_COLOR)

""
"Persistence helpers for AV Patch diagrams."
""

from .diagram_store import DiagramFormatError, DiagramStore
from .examples import DiagramExample, get_example, get_examples
from .recent import RecentDiagram, RecentDiagrams

__all__ = [
    "DiagramExample",
    "DiagramFormatError",
    "DiagramStore",
    "RecentDiagram",
    "RecentDiagrams",
    "get_example",
    "get_examples",
]

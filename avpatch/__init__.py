"""
AV Patch application package.

The equipment graph lives in :mod:`avpatch.nodes` and its modules hold no Qt
code; :mod:`avpatch.ui` hosts the editor. The QApplication factory is
re-exported here for the entry point, so importing any submodule also loads
PySide6.
"""

from .application import create_application

__all__ = ["create_application"]

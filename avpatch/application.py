from __future__ import annotations

import os
import sys
from typing import Optional

from PySide6.QtWidgets import QApplication

from .config import APP_NAME, ORGANIZATION_DOMAIN, ORGANIZATION_NAME


def create_application(argv: Optional[list[str]] = None) -> QApplication:
    """
    Create and configure the global QApplication instance.

    Parameters
    ----------
    argv:
        Optional command line arguments. Defaults to ``sys.argv``.

    Returns
    -------
    QApplication
        A configured Qt application object.
    """

    # Ensure the Qt platform plugin uses XCB on Linux by default unless the
    # user explicitly overrides it.
    if sys.platform.startswith("linux") and not os.environ.get("QT_QPA_PLATFORM"):
        os.environ["QT_QPA_PLATFORM"] = "xcb"

    app = QApplication(argv or sys.argv)
    app.setApplicationName(APP_NAME)
    app.setOrganizationName(ORGANIZATION_NAME)
    app.setOrganizationDomain(ORGANIZATION_DOMAIN)
    return app

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import NoReturn

from . import create_application
from .config import log_level
from .ui.main_window import MainWindow


def main() -> NoReturn:
    """
    Entry point for the AV Patch application.

    An optional diagram path on the command line is opened after start-up.
    """

    logging.basicConfig(
        level=log_level(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = create_application()
    window = MainWindow()
    arguments = app.arguments()[1:]
    if arguments:
        window.open_path(Path(arguments[0]))
    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()

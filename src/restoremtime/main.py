from __future__ import annotations

"""
Main Entry Point and Global Supervisor.

Installs a process-wide exception hook so that an unexpected crash is logged
at CRITICAL and ends the process with a non-zero status, then hands control
to the CLI controller.
"""

import logging
import os
import sys
import traceback
from typing import Any

# Make the package importable when this file is executed directly.
if __package__ in (None, ""):
    SRC_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    if SRC_DIR not in sys.path:
        sys.path.insert(0, SRC_DIR)


def global_exception_handler(exctype: type[BaseException], value: BaseException, tb: Any) -> None:
    """
    Report an unhandled exception. The interpreter still exits with status 1.

    Args:
        exctype: Exception class.
        value: Exception instance.
        tb: Traceback object.
    """
    stack_trace = "".join(traceback.format_exception(exctype, value, tb))
    logging.getLogger("restoremtime.supervisor").critical(
        f"FATAL EXCEPTION DETECTED: {value}\n{stack_trace}"
    )

    print("\n" + "=" * 80, file=sys.stderr)
    print("CRITICAL ERROR (RESTORE-MTIME)", file=sys.stderr)
    print("=" * 80, file=sys.stderr)
    print(stack_trace, file=sys.stderr)


def main() -> int:
    """Console script entry point."""
    sys.excepthook = global_exception_handler

    from restoremtime.interface.cli.app import main as cli_main
    return cli_main()


if __name__ == "__main__":
    sys.exit(main())

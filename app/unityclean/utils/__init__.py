"""Utility modules for unityclean.

This module exports commonly used utility functions.
"""

from unityclean.utils.formatting import (
    console,
    err_console,
    format_size,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from unityclean.utils.shell import command_exists, run_logged

__all__ = [
    "command_exists",
    "console",
    "err_console",
    "format_size",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
    "run_logged",
]

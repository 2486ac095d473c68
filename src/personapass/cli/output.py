# SPDX-License-Identifier: MIT
# Copyright (c) 2026 PersonaPass Contributors

"""Output formatting for CLI commands."""

from __future__ import annotations

import json
import sys
from typing import Any


def output_result(data: dict[str, Any] | list[Any], output_format: str = "json") -> None:
    """Print a command result.

    JSON mode pretty-prints the whole payload. Text mode prints ``key: value``
    lines for dicts and one JSON line per item for lists.
    """
    if output_format == "json":
        print(json.dumps(data, indent=2, default=str))
    elif isinstance(data, dict):
        for key, value in data.items():
            print(f"{key}: {value}")
    else:
        for item in data:
            print(json.dumps(item, default=str))


def output_error(message: str) -> None:
    """Print error message to stderr."""
    print(f"Error: {message}", file=sys.stderr)

"""
CLI Output Formatting

Renders poll results as a table or JSON.
"""

import json
import sys
from dataclasses import asdict, is_dataclass
from datetime import datetime
from enum import Enum
from typing import Any, List

from registry_poll.models import DomainNotification, PollResult


def _serialize(obj: Any) -> Any:
    if is_dataclass(obj):
        return _serialize(asdict(obj))
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, (list, tuple)):
        return [_serialize(item) for item in obj]
    if isinstance(obj, dict):
        return {k: _serialize(v) for k, v in obj.items()}
    return obj


def format_json(data: Any, include_extra: bool = False) -> str:
    """
    Format data as JSON.

    Args:
        data: Dataclass, list or dict
        include_extra: Keep the vendor-opaque ``extra`` payloads
    """
    serialized = _serialize(data)
    if not include_extra:
        serialized = _strip_extra(serialized)
    return json.dumps(serialized, indent=2, default=str)


def _strip_extra(data: Any) -> Any:
    if isinstance(data, dict):
        return {k: _strip_extra(v) for k, v in data.items() if k != "extra"}
    if isinstance(data, list):
        return [_strip_extra(item) for item in data]
    return data


def format_value(value: Any) -> str:
    """Format a single value for a table cell."""
    if value is None:
        return ""
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, (list, tuple)):
        if len(value) > 2:
            return f"{value[0]}, ... ({len(value)} total)"
        return ", ".join(str(v) for v in value)
    return str(value)


def format_notifications_table(notifications: List[DomainNotification]) -> str:
    """Format notifications as an aligned table."""
    if not notifications:
        return "No notifications"

    headers = ["id", "type", "domains", "created_at", "message"]
    rows = [[format_value(getattr(n, h)) for h in headers] for n in notifications]
    widths = [
        max(len(h), *(len(row[i]) for row in rows))
        for i, h in enumerate(headers)
    ]

    lines = [
        "  ".join(h.replace("_", " ").title().ljust(w) for h, w in zip(headers, widths)),
        "  ".join("-" * w for w in widths),
    ]
    for row in rows:
        lines.append("  ".join(cell.ljust(w) for cell, w in zip(row, widths)).rstrip())
    return "\n".join(lines)


def format_dataclass_table(obj: Any) -> str:
    """Format a (nested) dataclass as key: value lines, skipping empty values."""
    lines = []
    for key, value in asdict(obj).items():
        if value is None or value == [] or value == ():
            continue
        name = key
        if isinstance(value, dict):
            for sub_key, sub_value in value.items():
                if sub_value is not None:
                    lines.append(f"{name}.{sub_key}: {format_value(sub_value)}")
        else:
            lines.append(f"{name}: {format_value(value)}")
    return "\n".join(lines)


def format_poll_result(result: PollResult, format: str = "table") -> str:
    """Format a PollResult in the given format."""
    if format == "json":
        return format_json(result)

    table = format_notifications_table(result.notifications)
    return f"{table}\n\nRemaining in queue: {result.count_remaining}"


def print_success(message: str) -> None:
    """Print success message."""
    print(f"SUCCESS: {message}")


def print_error(message: str) -> None:
    """Print error message to stderr."""
    print(f"ERROR: {message}", file=sys.stderr)


def print_info(message: str) -> None:
    """Print info message."""
    print(f"INFO: {message}")


class OutputFormatter:
    """Formats output for the selected format, honouring --quiet."""

    def __init__(self, format: str = "table", quiet: bool = False):
        self.format = format
        self.quiet = quiet

    def output(self, data: Any) -> None:
        """Print formatted data."""
        if isinstance(data, PollResult):
            print(format_poll_result(data, self.format))
        elif self.format == "json":
            print(format_json(data))
        elif is_dataclass(data):
            print(format_dataclass_table(data))
        else:
            print(format_value(data))

    def success(self, message: str) -> None:
        """Print success message."""
        if not self.quiet:
            print_success(message)

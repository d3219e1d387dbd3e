"""Rendering of values and bucket properties for the CLI."""

from __future__ import annotations

import json
import sys
from typing import Any, Sequence

import yaml

from riakhttp.types import BucketProperties, Value

VALUE_COLUMNS = ("etag", "last_modified", "content_type", "data")


def value_to_dict(value: Value, *, key: str | None = None) -> dict[str, Any]:
    """Render a Value as a JSON-friendly dict; the body is decoded as text when possible."""
    try:
        data: Any = value.as_text()
    except Exception:
        data = value.data.hex()
    out: dict[str, Any] = {}
    if key is not None:
        out["key"] = key
    out.update(
        {
            "content_type": value.content_type.header_value(),
            "vector_clock": value.vector_clock,
            "etag": value.etag,
            "last_modified": value.last_modified.isoformat(),
            "indexes": sorted(f"{e.full_name}={e.value}" for e in value.indexes),
            "data": data,
        }
    )
    return out


def print_value(value: Value, *, key: str, json_mode: bool = False) -> None:
    """Print one value: metadata lines, a blank line, then the body."""
    data = value_to_dict(value, key=key)
    if json_mode:
        print(json.dumps(data, indent=2))
        return
    body = data.pop("data")
    for name, field in data.items():
        if name == "indexes":
            field = ", ".join(field) or "-"
        print(f"{name}: {field}")
    print()
    print(body)


def print_values(values: Sequence[Value], *, json_mode: bool = False) -> None:
    """Print index lookup results as a JSON array or an aligned table with a count."""
    rows = [value_to_dict(v) for v in values]
    if json_mode:
        print(json.dumps(rows, indent=2))
        return
    if rows:
        cells = [[str(row[c]) for c in VALUE_COLUMNS] for row in rows]
        widths = [max(len(c), *(len(r[i]) for r in cells)) for i, c in enumerate(VALUE_COLUMNS)]
        print("  ".join(c.ljust(w) for c, w in zip(VALUE_COLUMNS, widths)).rstrip())
        print("  ".join("-" * w for w in widths))
        for r in cells:
            print("  ".join(cell.ljust(w) for cell, w in zip(r, widths)).rstrip())
        print()
    print(f"{len(rows)} value(s)")


def print_properties(properties: BucketProperties, *, fmt: str = "json") -> None:
    """Print the properties the server reported, as JSON or YAML."""
    data = properties.model_dump(exclude_none=True)
    if fmt == "yaml":
        print(yaml.safe_dump(data, default_flow_style=False, sort_keys=True), end="")
        return
    print(json.dumps(data, indent=2, sort_keys=True))


def print_error(msg: str) -> None:
    print(f"Error: {msg}", file=sys.stderr)

"""``telegraphy features`` — list the features a router serves.

Prints a table of FEATURE, METHOD and the input/output JSON types, or
the full catalog (``Router.describe()``) as JSON with ``--json``.
"""

import argparse
import json
import sys
from typing import Any

from telegraphy.cli._resolve import resolve_router


def run_features(args: argparse.Namespace) -> None:
    try:
        router = resolve_router(args.router)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    catalog = router.describe()

    if args.json:
        print(json.dumps(catalog, indent=2))
        return

    if not catalog:
        print("No features registered.")
        return

    rows: list[tuple[str, str, str]] = []
    for entry in catalog:
        for method, schemas in entry["methods"].items():
            signature = f"{_summary(schemas['input'])} -> {_summary(schemas['output'])}"
            rows.append((entry["feature"], method, signature))

    max_feature = max(max((len(r[0]) for r in rows), default=0), 7)  # "FEATURE" header
    max_method = max(max((len(r[1]) for r in rows), default=0), 6)  # "METHOD" header

    fmt = f"{{:<{max_feature}}}  {{:<{max_method}}}  {{}}"
    print(fmt.format("FEATURE", "METHOD", "SIGNATURE"))
    sep_len = max_feature + max_method + 4 + max((len(r[2]) for r in rows), default=0)
    print("-" * min(sep_len, 80))
    for row in rows:
        print(fmt.format(*row))


def _summary(schema: dict[str, Any]) -> str:
    """One-word description of a JSON Schema fragment."""
    if "title" in schema:
        return schema["title"]
    kind = schema.get("type")
    if kind == "array":
        return f"{_summary(schema.get('items', {}))}[]"
    if kind == "object" and "properties" in schema:
        fields = ", ".join(schema["properties"])
        return f"{{{fields}}}"
    if kind:
        return str(kind)
    if "anyOf" in schema:
        return " | ".join(_summary(option) for option in schema["anyOf"])
    if "enum" in schema:
        return " | ".join(json.dumps(v) for v in schema["enum"])
    return "any"

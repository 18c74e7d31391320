#!/usr/bin/env python3
"""Preview the form tree of a pathway schema and optionally extract a submission.

Prints the built form as a rich tree (one line per element, with its
FieldKey and kind).  When a values file is given, the submission is run
through the processor and the resulting API payload is printed as JSON.

Usage::

    # Form tree of the shipped sample pathway, basic mode
    python scripts/preview_form.py pathways/paddy_rice.yaml

    # Full mode, with every field's options and bounds
    python scripts/preview_form.py pathways/paddy_rice.yaml --mode full -v

    # Extract a flat submission (JSON or YAML) into a payload
    python scripts/preview_form.py pathways/paddy_rice.yaml --values submission.json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.syntax import Syntax
from rich.tree import Tree

# ---------------------------------------------------------------------------
# Ensure src/ is importable when running from a checkout
# ---------------------------------------------------------------------------
_SCRIPT_DIR = Path(__file__).resolve().parent
_REPO_ROOT = _SCRIPT_DIR.parent
sys.path.insert(0, str(_REPO_ROOT / "src"))

from cfp_forms.constants import OperationMode  # noqa: E402
from cfp_forms.models.form import (  # noqa: E402
    ConditionalNode,
    FieldNode,
    GroupNode,
    PlaceholderNode,
    RepeatableNode,
    iter_fields,
)
from cfp_forms.processor import AssessmentFormProcessor  # noqa: E402
from cfp_forms.schema_store import load_document  # noqa: E402

# Rich styles per node kind
_KIND_STYLES = {
    "group": "bold cyan",
    "conditional": "bold magenta",
    "repeatable": "bold yellow",
    "placeholder": "dim",
    "unsupported": "red",
}


# ---------------------------------------------------------------------------
# Tree rendering
# ---------------------------------------------------------------------------

def _describe_field(node: FieldNode, verbose: bool) -> str:
    parts = [node.label]
    if node.required:
        parts.append("[red]*[/]")
    if verbose:
        if node.options:
            parts.append(f"options={[o.value for o in node.options]}")
        if node.kind == "number":
            parts.append(f"min={node.min} max={node.max} step={node.step}")
        if node.suffix:
            parts.append(f"({node.suffix})")
        if node.message:
            parts.append(f"[dim]{node.message}[/]")
    return " ".join(parts)


def add_nodes(parent: Tree, tree: dict[str, Any], verbose: bool) -> None:
    """Append one rich branch per form element, recursing into containers."""
    for key, node in tree.items():
        style = _KIND_STYLES.get(node.kind, "green")
        label = f"[{style}]{key}[/] [dim]<{node.kind}>[/]"
        visible = getattr(node, "visible_when", None)
        if visible is not None:
            label += f" [dim]when {visible.field} == {visible.equals}[/]"

        if isinstance(node, FieldNode):
            parent.add(f"{label} {_describe_field(node, verbose)}")
        elif isinstance(node, GroupNode):
            branch = parent.add(f"{label} {node.title or ''}")
            add_nodes(branch, node.children, verbose)
        elif isinstance(node, ConditionalNode):
            options = ", ".join(f"{o.value}={o.label}" for o in node.options)
            parent.add(f"{label} {node.title} [{options}]")
        elif isinstance(node, RepeatableNode):
            branch = parent.add(f"{label} {node.title}")
            add_nodes(branch, node.items, verbose)
        elif isinstance(node, PlaceholderNode):
            parent.add(f"{label} [dim]skipped[/]")


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Preview the form built from a pathway schema.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "schema",
        type=Path,
        help="Pathway schema file (.yaml, .yml or .json)",
    )
    parser.add_argument(
        "-m", "--mode",
        choices=[m.value for m in OperationMode],
        default=OperationMode.BASIC.value,
        help="Operation mode (default: basic)",
    )
    parser.add_argument(
        "--values",
        type=Path, default=None,
        help="Submitted values file to extract into a payload",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show options, bounds and messages for every field",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    console = Console()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    try:
        schema = load_document(args.schema)
    except FileNotFoundError as exc:
        console.print(f"[red]{exc}[/]")
        sys.exit(1)

    processor = AssessmentFormProcessor()
    mode = OperationMode(args.mode)
    form = processor.build_form(schema, mode)

    title = schema.get("title") if isinstance(schema, dict) else None
    root = Tree(f"[bold]{title or args.schema.stem}[/] [dim]({mode.value} mode)[/]")
    add_nodes(root, form, args.verbose)
    console.print(root)
    console.print(f"[dim]{sum(1 for _ in iter_fields(form))} input fields[/]")

    if args.values is None:
        return

    try:
        values = load_document(args.values)
    except FileNotFoundError as exc:
        console.print(f"[red]{exc}[/]")
        sys.exit(1)

    payload = processor.build_payload(schema, values or {}, mode)
    console.print()
    console.print("[bold]Payload[/]")
    console.print(Syntax(json.dumps(payload, indent=2, ensure_ascii=False), "json"))


if __name__ == "__main__":
    main()

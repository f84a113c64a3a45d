"""Human-friendly output formatter - converts plans and apply reports to readable text."""

import json
import os
from typing import Any, Dict, List, Optional
from ..execution.models import ExecutionReport, NodeStatus
from ..graph.reference_resolver import ResourceGraph
from ..ingest.values import UNKNOWN
from ..planner.models import Plan, PlannedChange, ResourceAction

ACTION_SYMBOLS = {
    ResourceAction.CREATE.value: "+",
    ResourceAction.UPDATE.value: "~",
    ResourceAction.REPLACE.value: "-/+",
    ResourceAction.DELETE.value: "-",
    ResourceAction.NO_OP.value: " ",
}

STATUS_LABELS = {
    NodeStatus.SUCCEEDED.value: ("✔", "OK"),
    NodeStatus.FAILED.value: ("✘", "FAIL"),
    NodeStatus.SKIPPED.value: ("↷", "SKIP"),
    NodeStatus.CANCELLED.value: ("⊘", "CANCEL"),
    NodeStatus.PENDING.value: ("…", "PEND"),
    NodeStatus.IN_PROGRESS.value: ("…", "RUN"),
}

KNOWN_AFTER_APPLY = "(known after apply)"


def _use_ascii(ascii_mode: Optional[bool] = None) -> bool:
    """Resolve whether to use ASCII output (checked at format time)."""
    if ascii_mode is not None:
        return bool(ascii_mode)
    return os.environ.get("INFRAPLAN_ASCII", "").lower() in ("1", "true", "yes")


def _box(title: str, width: int = 65, ascii_mode: bool = False) -> List[str]:
    """Return box-drawing header lines."""
    b = {"tl": "+", "tr": "+", "h": "-", "v": "|"} if ascii_mode else {"tl": "┌", "tr": "┐", "h": "─", "v": "│"}
    h = b["h"] * (width - 2)
    return [
        b["tl"] + h + b["tr"],
        f"{b['v']} {title:<{width - 4}} {b['v']}",
        ("+" if ascii_mode else "└") + h + ("+" if ascii_mode else "┘"),
        "",
    ]


def _section(title: str, width: int = 65) -> List[str]:
    """Return section divider."""
    h = "-" * width
    return [h, title.center(width), h]


def _render(value: Any) -> str:
    if value is UNKNOWN:
        return KNOWN_AFTER_APPLY
    if isinstance(value, str):
        return json.dumps(value)
    return json.dumps(value, sort_keys=True, default=str)


def _change_lines(change: PlannedChange) -> List[str]:
    symbol = ACTION_SYMBOLS[change.action]
    lines = [f"  {symbol} {change.address}"]
    before = change.before or {}
    after = change.after or {}

    if change.action == ResourceAction.CREATE:
        for name in sorted(after):
            lines.append(f"        {name} = {_render(after[name])}")
    elif change.action in (ResourceAction.UPDATE, ResourceAction.REPLACE):
        for name in change.changed_fields:
            note = "  # forces replacement" if name in change.replace_fields else ""
            old = _render(before[name]) if name in before else "null"
            new = _render(after[name]) if name in after else "null"
            lines.append(f"        {name}: {old} -> {new}{note}")
        if change.action == ResourceAction.REPLACE:
            order = "create before destroy" if change.create_before_destroy else "destroy then create"
            lines.append(f"        ({order})")
    return lines


def format_plan(plan: Plan, ascii_mode: Optional[bool] = None) -> str:
    """
    Format a plan for terminal display.

    Args:
        plan: Plan to render
        ascii_mode: Force ASCII box drawing (default: $INFRAPLAN_ASCII)

    Returns:
        Multi-line text ending with the "Plan: X to add..." summary
    """
    ascii_mode = _use_ascii(ascii_mode)
    title = "INFRAPLAN DESTROY PLAN" if plan.destroy else "INFRAPLAN EXECUTION PLAN"
    lines = _box(title, ascii_mode=ascii_mode)

    pending = [c for c in plan.changes if c.action != ResourceAction.NO_OP]
    if not pending:
        lines.append("No changes. Infrastructure matches the declarations.")
        return "\n".join(lines)

    lines.append("Resource actions are indicated with the following symbols:")
    lines.append("  + create   ~ update in-place   -/+ replace   - destroy")
    lines.append("")
    lines.extend(_section("CHANGES (in execution order)"))
    for change in pending:
        lines.extend(_change_lines(change))
    lines.append("")

    summary = plan.summary()
    to_add = summary["CREATE"] + summary["REPLACE"]
    to_destroy = summary["DELETE"] + summary["REPLACE"]
    lines.append(f"Plan: {to_add} to add, {summary['UPDATE']} to change, {to_destroy} to destroy.")
    return "\n".join(lines)


def format_report(report: ExecutionReport, ascii_mode: Optional[bool] = None) -> str:
    """Format an apply report: one line per change plus totals."""
    ascii_mode = _use_ascii(ascii_mode)
    lines = _box("INFRAPLAN APPLY RESULTS", ascii_mode=ascii_mode)

    for result in report.results:
        icon, label = STATUS_LABELS[result.status]
        marker = f"[{label}]" if ascii_mode else icon
        line = f"  {marker:<8} {result.address} ({result.action})"
        if result.attempts > 1:
            line += f" after {result.attempts} attempts"
        lines.append(line)
        if result.error:
            lines.append(f"           {result.error}")

    counts = report.counts()
    lines.append("")
    lines.append(
        f"Apply {'cancelled' if report.cancelled else 'complete'}: "
        f"{counts['succeeded']} succeeded, {counts['failed']} failed, "
        f"{counts['skipped']} skipped, {counts['cancelled']} cancelled."
    )
    return "\n".join(lines)


def format_outputs(outputs: Dict[str, Any]) -> str:
    """Format evaluated outputs as name = value lines."""
    if not outputs:
        return "No outputs."
    return "\n".join(f"{name} = {_render(outputs[name])}" for name in sorted(outputs))


def format_graph(graph: ResourceGraph) -> str:
    """Format reference edges, one consumer -> producer per line."""
    lines = [f"{len(graph.nodes)} resources, {len(graph.references)} references", ""]
    for reference in sorted(graph.references, key=lambda r: (r.consumer, r.producer, r.consumer_field or "", r.output or "")):
        lines.append(f"  {reference.describe()}")
    return "\n".join(lines)

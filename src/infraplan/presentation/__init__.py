"""Presentation layer - human-friendly formatting."""

from .human_formatter import format_plan, format_report, format_outputs, format_graph

__all__ = ["format_plan", "format_report", "format_outputs", "format_graph"]

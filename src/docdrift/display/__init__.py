"""Display and formatting utilities for docdrift."""

from docdrift.display.formatters import (
    create_file_entries_table,
    create_pass_report_table,
    display_analysis,
    display_cost_estimate,
    display_cost_stats,
    display_pass_summary,
    display_tracking_stats,
)

__all__ = [
    "create_file_entries_table",
    "create_pass_report_table",
    "display_analysis",
    "display_cost_estimate",
    "display_cost_stats",
    "display_pass_summary",
    "display_tracking_stats",
]

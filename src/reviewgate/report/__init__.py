"""
Reporting module for reviewgate.

Output formats:
    - Console: Rich verdict panel, per-rule table, failing-rule diagnostics
    - JSON: Structured output for programmatic consumption

Example:
    from reviewgate.report import generate_console_report, generate_json_report

    generate_console_report(result)
    print(generate_json_report(result))
"""

from reviewgate.report.console import generate_console_report
from reviewgate.report.json import build_report_dict, generate_json_report

__all__ = [
    "generate_console_report",
    "generate_json_report",
    "build_report_dict",
]

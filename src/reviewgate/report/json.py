"""
JSON report generator for reviewgate.

Produces a stable, machine-readable rendering of an EvaluationResult for
CI tooling and audit logs.
"""

import json
from datetime import UTC, datetime
from typing import Any

from reviewgate.schema import EvaluationResult

REPORT_VERSION = "1.0"


def build_report_dict(result: EvaluationResult) -> dict[str, Any]:
    """Build a report dictionary for an evaluation."""
    return {
        "report_version": REPORT_VERSION,
        "generated_at": datetime.now(UTC).isoformat(),
        "approved": result.approved,
        "rules_passed": result.rules_passed,
        "override_applied": result.override_applied,
        "override": result.override.model_dump() if result.override else None,
        "rules": [
            {
                "prefix": r.prefix,
                "matched": r.matched,
                "passed": r.passed,
                "affected_files": r.affected_files,
                "required_approver_count": r.required_approver_count,
                "users": r.users,
                "teams": r.teams,
                "relevant_approvals": r.relevant_approvals,
                "diagnostic": r.diagnostic,
            }
            for r in result.rule_results
        ],
        "warnings": result.warnings,
    }


def generate_json_report(result: EvaluationResult, indent: int = 2) -> str:
    """Render an evaluation as a JSON string."""
    return json.dumps(build_report_dict(result), indent=indent)

"""
Policy evaluation for reviewgate.

This package holds the only non-trivial logic in reviewgate: deciding
whether a pull request has the approvals its reviewer policy requires.

Key concepts:
    - Rule: a path prefix mapped to a required approver set and count
    - Approver set: the named users plus members of the named teams
    - Override: a predicate that waives failing rules when it holds

The engine is:
    - Pure: no I/O, safe to call concurrently for independent changes
    - Fail-closed: an undefined team is a configuration error, never empty
    - Explainable: every failing rule carries a reproducible diagnostic
"""

from reviewgate.policy.approvals import derive_approvals, latest_review_states
from reviewgate.policy.engine import (
    ReviewPolicyEngine,
    check_override,
    evaluate_rules,
    find_satisfied_override,
    resolve_possible_approvers,
    rules_passed,
)

__all__ = [
    "ReviewPolicyEngine",
    "check_override",
    "derive_approvals",
    "evaluate_rules",
    "find_satisfied_override",
    "latest_review_states",
    "resolve_possible_approvers",
    "rules_passed",
]

"""
reviewgate - Path-based required reviewers for pull requests.

reviewgate checks that a pull request has the approvals a declarative
reviewer policy demands before it may be merged.
It provides:
- Prefix rules mapping repository paths to required approvers and counts
- Teams, so rules can name groups instead of individuals
- Overrides that waive requirements for trusted automation or safe files
- A GitHub Actions runner that posts the verdict as a review

Example usage:
    $ reviewgate validate .github/reviewers.json
    $ reviewgate check .github/reviewers.json -f src/app.py -a alice
    $ reviewgate run --post-review
"""

__version__ = "0.1.0"
__author__ = "reviewgate Contributors"

from reviewgate.policy import (
    ReviewPolicyEngine,
    check_override,
    derive_approvals,
    evaluate_rules,
    resolve_possible_approvers,
)
from reviewgate.schema import (
    ChangeSet,
    EvaluationResult,
    ReviewPolicy,
    load_policy,
    load_policy_from_string,
)

__all__ = [
    "__version__",
    "__author__",
    "ChangeSet",
    "EvaluationResult",
    "ReviewPolicy",
    "ReviewPolicyEngine",
    "check_override",
    "derive_approvals",
    "evaluate_rules",
    "load_policy",
    "load_policy_from_string",
    "resolve_possible_approvers",
]

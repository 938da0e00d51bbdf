"""
GitHub integration for reviewgate.

Supplies the four evaluation inputs (policy, modified files, approvals,
committers) and posts the verdict back as a pull request review.
"""

from reviewgate.github.client import (
    DEFAULT_API_URL,
    MAX_PR_COMMITS,
    MAX_PR_FILES,
    GitHubClient,
    Listing,
)
from reviewgate.github.event import get_base_ref, get_pr_number, load_event_payload

__all__ = [
    "DEFAULT_API_URL",
    "MAX_PR_COMMITS",
    "MAX_PR_FILES",
    "GitHubClient",
    "Listing",
    "get_base_ref",
    "get_pr_number",
    "load_event_payload",
]

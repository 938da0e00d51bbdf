"""
Approval derivation from a pull request's review history.

Reviews arrive in chronological order. For each reviewer only the most
recent non-comment state counts: a later CHANGES_REQUESTED cancels an
earlier APPROVED and vice versa, while COMMENTED never changes anything.
"""

from collections.abc import Iterable

from reviewgate.schema import Review, ReviewState


def latest_review_states(reviews: Iterable[Review]) -> dict[str, ReviewState]:
    """Map each reviewer to their most recent significant review state."""
    states: dict[str, ReviewState] = {}
    for review in reviews:
        # Deleted accounts have no login and cannot approve
        if review.user is None or review.state == ReviewState.COMMENTED:
            continue
        states[review.user] = review.state
    return states


def derive_approvals(reviews: Iterable[Review]) -> frozenset[str]:
    """Return the users whose latest significant review is an approval."""
    return frozenset(
        user
        for user, state in latest_review_states(reviews).items()
        if state == ReviewState.APPROVED
    )

"""
Pull request review runner for reviewgate.

The runner is the orchestration layer for GitHub Actions runs. It
coordinates between:
- GitHubClient: fetches the policy and the pull request's inputs
- ReviewPolicyEngine: decides whether the pull request is approved
- GitHubClient again: posts the verdict as a review when configured to

Execution Flow:
    1. Resolve the pull request number from the workflow event
    2. Load the policy (from config_ref, or the default branch)
    3. List modified files, reviews and committers; derive approvals
    4. Evaluate the policy, with overrides considered on failure
    5. Act on the verdict: post a review, or report failure to the caller

Design Principles:
    - Cannot-evaluate is an exception; rejected is a result
    - Inputs are fetched once per run and treated as final
"""

import logging
from dataclasses import dataclass

from reviewgate.config import ActionSettings
from reviewgate.errors import InputTruncatedError
from reviewgate.github.client import GitHubClient
from reviewgate.github.event import get_base_ref, get_pr_number, load_event_payload
from reviewgate.policy import ReviewPolicyEngine, derive_approvals
from reviewgate.schema import ChangeSet, EvaluationResult, ReviewEvent, ReviewPolicy

logger = logging.getLogger(__name__)

APPROVE_BODY = "All review requirements have been met"
REQUEST_CHANGES_BODY = "Missing required reviewers"


@dataclass
class RunOutcome:
    """
    Result of a runner invocation.

    Attributes:
        pr_number: The pull request that was evaluated
        result: The policy evaluation result
        review_posted: The review event posted, if any
    """

    pr_number: int
    result: EvaluationResult
    review_posted: ReviewEvent | None = None

    @property
    def success(self) -> bool:
        """
        Whether the workflow step should succeed.

        A rejection reported through a posted review does not also fail
        the step; the review itself blocks the merge.
        """
        return self.result.approved or self.review_posted == ReviewEvent.REQUEST_CHANGES


class ReviewRunner:
    """
    Evaluates one pull request end to end.

    Usage:
        settings = ActionSettings.from_env()
        with GitHubClient(settings.github_token, settings.api_url) as client:
            outcome = ReviewRunner(settings, client).run()

    Attributes:
        settings: Run configuration
        client: GitHub API client
    """

    def __init__(self, settings: ActionSettings, client: GitHubClient) -> None:
        self.settings = settings
        self.client = client

    def run(self) -> RunOutcome:
        """
        Evaluate the pull request named by the workflow event.

        Raises:
            InputUnavailableError: An input could not be fetched
            ConfigurationError: The policy is invalid
        """
        payload = load_event_payload(self.settings.event_path)
        pr_number = get_pr_number(self.settings.event_name, payload)
        logger.info("Evaluating pull request #%d in %s", pr_number, self.settings.repository)

        base_ref = get_base_ref(payload)
        if base_ref:
            logger.info("Pull request base ref: %s", base_ref)

        policy = self.load_policy()
        change = self.collect_change(pr_number)
        result = ReviewPolicyEngine(policy).evaluate(change)
        review_posted = self.act(pr_number, result)

        if result.approved:
            logger.info(APPROVE_BODY)
        return RunOutcome(pr_number=pr_number, result=result, review_posted=review_posted)

    def collect_change(self, pr_number: int) -> ChangeSet:
        """Fetch the pull request's files, approvals and committers."""
        repo = self.settings.repository
        files = self.client.list_modified_files(repo, pr_number)
        reviews = self.client.list_reviews(repo, pr_number)
        committers = self.client.list_committers(repo, pr_number)

        approvals = derive_approvals(reviews.items)
        logger.debug(
            "Fetched %d files, %d reviews, %d commits",
            len(files.items),
            len(reviews.items),
            len(committers.items),
        )
        logger.debug("Approvals: %s", ", ".join(sorted(approvals)) or "none")

        truncated = [
            name
            for name, listing in (
                ("files", files),
                ("reviews", reviews),
                ("commits", committers),
            )
            if listing.truncated
        ]
        if truncated and self.settings.fail_on_truncation:
            raise InputTruncatedError(inputs=truncated)

        return ChangeSet(
            modified_files=files.items,
            approvals=approvals,
            committers=committers.items,
            truncated=truncated,
        )

    def load_policy(self) -> ReviewPolicy:
        """Fetch the policy from config_ref, or the default branch."""
        return self.client.get_policy(
            self.settings.repository,
            path=self.settings.config_path,
            ref=self.settings.policy_ref,
        )

    def act(self, pr_number: int, result: EvaluationResult) -> ReviewEvent | None:
        """Post the verdict as a review when post_review is enabled."""
        if not self.settings.post_review:
            return None

        if result.approved:
            event, body = ReviewEvent.APPROVE, APPROVE_BODY
        else:
            event, body = ReviewEvent.REQUEST_CHANGES, REQUEST_CHANGES_BODY

        self.client.create_review(self.settings.repository, pr_number, event, body)
        logger.info("Posted %s review on #%d", event.value, pr_number)
        return event

"""
Review Policy Engine for reviewgate.

The engine decides whether a pull request satisfies the reviewer policy.
It is pure: no I/O, no shared state, same inputs always give the same
verdict. Logging is the only side effect.

How it works:
    1. For each rule, in declared order, find the modified files under its
       path prefix (literal string prefix, not a glob)
    2. Matched rules resolve their approver set (named users plus members
       of named teams) and count the approvals that fall in it
    3. The change is approved when every matched rule has enough approvals
    4. Otherwise each override entry is tried; the first whose clauses all
       hold waives the failure

Security Note:
    A rule naming an undefined team raises UndefinedTeamError. Treating the
    team as empty would quietly make the rule unsatisfiable or, worse,
    hide a typo in a security control.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence

from reviewgate.errors import UndefinedTeamError
from reviewgate.schema import (
    ChangeSet,
    EvaluationResult,
    OverrideCriteria,
    OverrideMatch,
    ReviewPolicy,
    ReviewRule,
    RuleResult,
    Team,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Approver-Set Resolver
# =============================================================================


def resolve_possible_approvers(
    rule: ReviewRule,
    teams: Mapping[str, Team],
    prefix: str = "",
) -> frozenset[str]:
    """
    Expand a rule's named users and teams into a flat set of logins.

    Args:
        rule: The review rule
        teams: The policy's team roster
        prefix: The rule's path prefix, used only in error messages

    Returns:
        Union of rule.users and the members of every team in rule.teams

    Raises:
        UndefinedTeamError: If a named team is not in the roster
    """
    approvers = set(rule.users)
    for team_name in rule.teams:
        team = teams.get(team_name)
        if team is None:
            raise UndefinedTeamError(team=team_name, rule=prefix)
        approvers.update(team.users)
    return frozenset(approvers)


# =============================================================================
# Rule Evaluator
# =============================================================================


def format_rule_failure(
    rule: ReviewRule,
    affected_files: Sequence[str],
    relevant_approvals: Sequence[str],
) -> str:
    """
    Build the operator-facing explanation for a failing rule.

    The text depends only on its arguments so it can be reproduced from the
    evaluation inputs.
    """
    lines = ["Modified Files:"]
    lines.extend(f" - {f}" for f in affected_files)
    lines.append(f"Require {rule.required_approver_count} reviews from:")
    if rule.users:
        lines.append("  users:")
        lines.extend(f" - {u}" for u in rule.users)
    else:
        lines.append("  users: []")
    if rule.teams:
        lines.append("  teams:")
        lines.extend(f" - {t}" for t in rule.teams)
    else:
        lines.append("  teams: []")
    lines.append(
        f"But only found {len(relevant_approvals)} approvals: "
        f"[{', '.join(relevant_approvals)}]."
    )
    return "\n".join(lines)


def evaluate_rule(
    prefix: str,
    rule: ReviewRule,
    teams: Mapping[str, Team],
    modified_files: Sequence[str],
    approvals: Iterable[str],
) -> RuleResult:
    """Evaluate a single rule against the change."""
    affected_files = [f for f in modified_files if f.startswith(prefix)]
    if not affected_files:
        return RuleResult(
            prefix=prefix,
            matched=False,
            passed=True,
            required_approver_count=rule.required_approver_count,
            users=list(rule.users),
            teams=list(rule.teams),
        )

    approvers = resolve_possible_approvers(rule, teams, prefix)
    relevant = sorted(set(approvals) & approvers)
    passed = len(relevant) >= rule.required_approver_count

    if passed:
        diagnostic = f"{prefix} review requirements met."
    else:
        diagnostic = format_rule_failure(rule, affected_files, relevant)

    return RuleResult(
        prefix=prefix,
        matched=True,
        passed=passed,
        affected_files=affected_files,
        required_approver_count=rule.required_approver_count,
        users=list(rule.users),
        teams=list(rule.teams),
        relevant_approvals=relevant,
        diagnostic=diagnostic,
    )


def evaluate_rules(
    reviewers: Mapping[str, ReviewRule],
    teams: Mapping[str, Team],
    modified_files: Sequence[str],
    approvals: Iterable[str],
) -> list[RuleResult]:
    """
    Evaluate every rule, in the declared order of the reviewers mapping.

    Returns:
        One RuleResult per rule, matched or not
    """
    approvals = frozenset(approvals)
    return [
        evaluate_rule(prefix, rule, teams, modified_files, approvals)
        for prefix, rule in reviewers.items()
    ]


def rules_passed(results: Iterable[RuleResult]) -> bool:
    """AND over the matched rules; unmatched rules never gate approval."""
    return all(r.passed for r in results if r.matched)


# =============================================================================
# Override Evaluator
# =============================================================================


def override_satisfied(
    override: OverrideCriteria,
    modified_files: Sequence[str],
    committers: Sequence[str | None],
    index: int | None = None,
) -> bool:
    """
    Check whether all present clauses of one override hold.

    onlyModifiedByUsers: every committer is resolved and in the allowed set.
    onlyModifiedFileRegExs: every file matches at least one pattern
    (unanchored search unless the pattern anchors itself).
    """
    satisfied = True

    if override.only_modified_by_users is not None:
        allowed = set(override.only_modified_by_users)
        satisfied = satisfied and all(
            user is not None and user in allowed for user in committers
        )

    if override.only_modified_file_regexes is not None:
        patterns = override.compiled_patterns(index)
        satisfied = satisfied and all(
            any(p.search(path) for p in patterns) for path in modified_files
        )

    return satisfied


def find_satisfied_override(
    overrides: Sequence[OverrideCriteria],
    modified_files: Sequence[str],
    committers: Sequence[str | None],
) -> OverrideMatch | None:
    """Return the first override whose clauses all hold, or None."""
    for index, override in enumerate(overrides):
        if override_satisfied(override, modified_files, committers, index):
            return OverrideMatch(index=index, description=override.description)
    return None


def check_override(
    overrides: Sequence[OverrideCriteria],
    modified_files: Sequence[str],
    committers: Sequence[str | None],
) -> bool:
    """Return True if at least one override entry is satisfied."""
    return find_satisfied_override(overrides, modified_files, committers) is not None


# =============================================================================
# Engine
# =============================================================================


class ReviewPolicyEngine:
    """
    Evaluates pull requests against a reviewer policy.

    Usage:
        engine = ReviewPolicyEngine(policy)
        result = engine.evaluate(change)
        if result.approved:
            # merge may proceed
        else:
            for text in result.diagnostics():
                print(text)

    Attributes:
        policy: The reviewer policy to enforce
    """

    def __init__(self, policy: ReviewPolicy) -> None:
        self.policy = policy

    def evaluate(self, change: ChangeSet) -> EvaluationResult:
        """
        Evaluate a change against the policy.

        Raises:
            UndefinedTeamError: If a matched rule names an unknown team
            InvalidPatternError: If a consulted override pattern is invalid
        """
        warnings = [
            f"{name} list hit the data source limit; evaluation may be incomplete"
            for name in change.truncated
        ]
        for warning in warnings:
            logger.warning(warning)

        results = evaluate_rules(
            self.policy.reviewers,
            self.policy.teams,
            change.modified_files,
            change.approvals,
        )
        for result in results:
            if not result.matched:
                continue
            if result.passed:
                logger.info(result.diagnostic)
            else:
                logger.warning(result.diagnostic)

        passed = rules_passed(results)
        override = None
        if not passed:
            override = find_satisfied_override(
                self.policy.overrides,
                change.modified_files,
                change.committers,
            )
            if override is not None:
                logger.info(
                    "Missing required approvals but allowing due to override %d%s.",
                    override.index,
                    f" ({override.description})" if override.description else "",
                )

        return EvaluationResult(
            approved=passed or override is not None,
            rules_passed=passed,
            rule_results=results,
            override=override,
            warnings=warnings,
        )

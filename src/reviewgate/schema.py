"""
Schema definitions for reviewgate.

This module defines the Pydantic models used throughout reviewgate:
- ReviewPolicy/Team/ReviewRule/OverrideCriteria: the reviewer policy document
- Review/ChangeSet: the runtime description of a pull request
- RuleResult/OverrideMatch/EvaluationResult: the outcome of an evaluation

Design Decisions:
    - Policy documents use camelCase keys; models expose snake_case
      attributes through aliases (populate_by_name lets tests use either)
    - Optional sections (teams, overrides) default to empty once, at load
    - All models are immutable (frozen=True)
    - Team references and override patterns are verified eagerly at load
"""

import json
import re
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from reviewgate.errors import (
    InvalidPatternError,
    PolicyNotFoundError,
    PolicyValidationError,
    UndefinedTeamError,
)

DEFAULT_POLICY_PATH = ".github/reviewers.json"


# =============================================================================
# Enums
# =============================================================================


class ReviewState(str, Enum):
    """State of a single pull request review, as reported by GitHub."""

    APPROVED = "APPROVED"
    CHANGES_REQUESTED = "CHANGES_REQUESTED"
    COMMENTED = "COMMENTED"
    DISMISSED = "DISMISSED"
    PENDING = "PENDING"


class ReviewEvent(str, Enum):
    """Review actions reviewgate can post back to a pull request."""

    APPROVE = "APPROVE"
    REQUEST_CHANGES = "REQUEST_CHANGES"


# =============================================================================
# Policy Models
# =============================================================================


class Team(BaseModel):
    """
    A named group of users.

    Members are declared as a list but treated as a set everywhere.

    Attributes:
        description: Optional human-readable description
        users: Login names of the team members
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    description: str | None = Field(
        default=None,
        description="Optional human-readable description",
    )
    users: list[str] = Field(
        default_factory=list,
        description="Login names of the team members",
    )

    @field_validator("users")
    @classmethod
    def validate_members(cls, v: list[str]) -> list[str]:
        """Every member must be a non-empty login."""
        for user in v:
            if not user.strip():
                msg = "Team members must be non-empty strings"
                raise ValueError(msg)
        return v


class ReviewRule(BaseModel):
    """
    Review requirement for every file under a path prefix.

    Attributes:
        description: Optional human-readable description
        users: Individually named approvers
        teams: Names of teams whose members may approve
        required_approver_count: Minimum number of relevant approvals
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    description: str | None = Field(
        default=None,
        description="Optional human-readable description",
    )
    users: list[str] = Field(
        default_factory=list,
        description="Individually named approvers",
    )
    teams: list[str] = Field(
        default_factory=list,
        description="Teams whose members may approve",
    )
    required_approver_count: int = Field(
        ...,
        alias="requiredApproverCount",
        description="Minimum number of relevant approvals",
        ge=0,
        strict=True,
    )


class OverrideCriteria(BaseModel):
    """
    Conditions under which failing review requirements are waived.

    Both clauses are optional. An absent clause does not constrain the
    override, so an entry with neither clause always applies.

    Attributes:
        description: Optional human-readable description
        only_modified_by_users: Every commit must be by one of these users
        only_modified_file_regexes: Every modified file must match one of these
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    description: str | None = Field(
        default=None,
        description="Optional human-readable description",
    )
    only_modified_by_users: list[str] | None = Field(
        default=None,
        alias="onlyModifiedByUsers",
        description="Every commit must be authored by one of these users",
    )
    only_modified_file_regexes: list[str] | None = Field(
        default=None,
        alias="onlyModifiedFileRegExs",
        description="Every modified file must match at least one of these patterns",
    )

    def compiled_patterns(self, index: int | None = None) -> list[re.Pattern[str]]:
        """Compile the file patterns, raising InvalidPatternError on bad syntax."""
        compiled = []
        for pattern in self.only_modified_file_regexes or []:
            try:
                compiled.append(re.compile(pattern))
            except re.error as e:
                raise InvalidPatternError(
                    pattern=pattern,
                    override_index=index,
                    underlying_error=str(e),
                ) from e
        return compiled


class ReviewPolicy(BaseModel):
    """
    Complete reviewer policy.

    Attributes:
        teams: Team name to team definition
        reviewers: Path prefix to review requirement, in declared order
        overrides: Ordered list of override criteria
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    schema_url: str | None = Field(
        default=None,
        alias="$schema",
        description="Optional JSON schema reference, ignored",
    )
    teams: dict[str, Team] = Field(
        default_factory=dict,
        description="Team name to team definition",
    )
    reviewers: dict[str, ReviewRule] = Field(
        ...,
        description="Path prefix to review requirement",
    )
    overrides: list[OverrideCriteria] = Field(
        default_factory=list,
        description="Criteria that overrule review requirements",
    )


# =============================================================================
# Runtime Models
# =============================================================================


class Review(BaseModel):
    """
    One submitted review on a pull request.

    Attributes:
        user: Login of the reviewer, None if the account no longer resolves
        state: The review state
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    user: str | None = Field(default=None, description="Login of the reviewer")
    state: ReviewState = Field(..., description="The review state")


class ChangeSet(BaseModel):
    """
    The pull request under evaluation.

    Built fresh for every evaluation from three independent queries; the
    caller is responsible for supplying a consistent snapshot.

    Attributes:
        modified_files: Repository-relative paths touched by the change
        approvals: Users whose latest review state is APPROVED
        committers: Commit author logins, None where unresolved
        truncated: Names of inputs that hit a data-source cap
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    modified_files: list[str] = Field(
        default_factory=list,
        description="Repository-relative paths touched by the change",
    )
    approvals: frozenset[str] = Field(
        default_factory=frozenset,
        description="Users whose latest review state is APPROVED",
    )
    committers: list[str | None] = Field(
        default_factory=list,
        description="Commit author logins, None where unresolved",
    )
    truncated: list[str] = Field(
        default_factory=list,
        description="Inputs that hit a data-source cap",
    )


class RuleResult(BaseModel):
    """
    Outcome of evaluating one review rule.

    Attributes:
        prefix: The rule's path prefix
        matched: Whether any modified file falls under the prefix
        passed: Whether the rule is satisfied (always True when unmatched)
        affected_files: Modified files under the prefix
        required_approver_count: Approvals the rule requires
        users: Users named by the rule
        teams: Teams named by the rule
        relevant_approvals: Approvals from the rule's approver set, sorted
        diagnostic: Operator-facing explanation
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    prefix: str
    matched: bool
    passed: bool
    affected_files: list[str] = Field(default_factory=list)
    required_approver_count: int = 0
    users: list[str] = Field(default_factory=list)
    teams: list[str] = Field(default_factory=list)
    relevant_approvals: list[str] = Field(default_factory=list)
    diagnostic: str = ""


class OverrideMatch(BaseModel):
    """The override entry that waived failing requirements."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    index: int = Field(..., description="Position in the policy's overrides list", ge=0)
    description: str | None = Field(default=None, description="The override's description")


class EvaluationResult(BaseModel):
    """
    Final verdict for a pull request.

    Attributes:
        approved: Verdict after rule evaluation and override consideration
        rules_passed: Whether every matched rule passed on its own
        rule_results: Per-rule outcomes, in the policy's declared order
        override: The override that waived failures, if any
        warnings: Notices about the quality of the input (e.g. truncation)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    approved: bool
    rules_passed: bool
    rule_results: list[RuleResult] = Field(default_factory=list)
    override: OverrideMatch | None = None
    warnings: list[str] = Field(default_factory=list)

    @property
    def override_applied(self) -> bool:
        """Whether an override flipped a failing evaluation to approved."""
        return self.override is not None

    def failed_rules(self) -> list[RuleResult]:
        """Return the matched rules that did not pass."""
        return [r for r in self.rule_results if r.matched and not r.passed]

    def diagnostics(self) -> list[str]:
        """Diagnostic text for every failing rule."""
        return [r.diagnostic for r in self.failed_rules()]


# =============================================================================
# Loading Helpers
# =============================================================================


def check_policy_references(policy: ReviewPolicy) -> None:
    """
    Verify that every team reference resolves and every pattern compiles.

    Raises:
        UndefinedTeamError: A rule names a team missing from policy.teams
        InvalidPatternError: An override pattern is not a valid regex
    """
    for prefix, rule in policy.reviewers.items():
        for team in rule.teams:
            if team not in policy.teams:
                raise UndefinedTeamError(team=team, rule=prefix)
    for index, override in enumerate(policy.overrides):
        override.compiled_patterns(index)


def parse_policy(data: Any, source: str = "") -> ReviewPolicy:
    """
    Validate decoded policy data.

    Args:
        data: Decoded JSON/YAML document
        source: Where the document came from, for error messages

    Returns:
        Validated ReviewPolicy with references checked
    """
    if not isinstance(data, dict):
        raise PolicyValidationError(
            source=source,
            validation_error=f"expected an object, got {type(data).__name__}",
        )

    try:
        policy = ReviewPolicy.model_validate(data)
    except ValidationError as e:
        raise PolicyValidationError(source=source, validation_error=str(e)) from e

    check_policy_references(policy)
    return policy


def load_policy_from_string(content: str, source: str = "") -> ReviewPolicy:
    """
    Load a policy from a JSON or YAML string.

    JSON is tried first so that tab-indented documents are accepted; YAML
    covers hand-written policies.
    """
    if not content.strip():
        raise PolicyNotFoundError(path=source or DEFAULT_POLICY_PATH)

    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise PolicyValidationError(source=source, validation_error=str(e)) from e

    return parse_policy(data, source)


def load_policy(path: Path | str) -> ReviewPolicy:
    """
    Load a policy from a JSON or YAML file.

    Args:
        path: Path to the policy file

    Returns:
        Validated ReviewPolicy object

    Raises:
        PolicyNotFoundError: If the file cannot be read or is empty
        PolicyValidationError: If the document is not UTF-8 or does not match the schema
        UndefinedTeamError: If a rule references an unknown team
    """
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise PolicyValidationError(source=str(path), validation_error=str(e)) from e
    except OSError as e:
        raise PolicyNotFoundError(
            path=str(path),
            message=f"Unable to read {path}: {e.strerror or e}",
        ) from e

    return load_policy_from_string(content, source=str(path))

"""
Exception hierarchy for reviewgate.

All reviewgate exceptions inherit from ReviewGateError, allowing callers to
catch every reviewgate-specific exception with a single except clause.

Exception Categories:
    - ConfigurationError: The policy (or the tool's settings) is malformed
    - InputUnavailableError: One of the evaluation inputs cannot be obtained
    - GitHubError: The GitHub API returned an error or could not be reached

A rejected pull request is NOT an error. Evaluation returning
``approved=False`` is a normal outcome and is reported through
EvaluationResult, never through an exception.
"""

from dataclasses import dataclass, field
from typing import Any


# =============================================================================
# Error Codes
# =============================================================================

# Configuration errors: 1xxx
ERROR_CONFIGURATION = 1000
ERROR_POLICY_INVALID = 1001
ERROR_POLICY_UNDEFINED_TEAM = 1002
ERROR_POLICY_INVALID_PATTERN = 1003
ERROR_SETTINGS_INVALID = 1004

# Input errors: 2xxx
ERROR_INPUT_UNAVAILABLE = 2000
ERROR_POLICY_NOT_FOUND = 2001
ERROR_UNSUPPORTED_EVENT = 2002
ERROR_INPUT_TRUNCATED = 2003

# GitHub errors: 3xxx
ERROR_GITHUB = 3000
ERROR_GITHUB_API = 3001
ERROR_GITHUB_CONNECTION = 3002


# =============================================================================
# Base Exception
# =============================================================================


@dataclass
class ReviewGateError(Exception):
    """
    Base exception for all reviewgate errors.

    Attributes:
        message: Human-readable error description
        code: Numeric error code for programmatic handling
        suggestion: Optional hint for how to resolve the error
        context: Optional dict with additional debugging info
    """

    message: str = ""
    code: int = 0
    suggestion: str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        """Format error for display."""
        parts = [f"[E{self.code}] {self.message}"]
        if self.suggestion:
            parts.append(f"\nSuggestion: {self.suggestion}")
        return "".join(parts)

    def __repr__(self) -> str:
        """Format error for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code}, "
            f"context={self.context!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "suggestion": self.suggestion,
            "context": self.context,
        }


# =============================================================================
# Configuration Errors
# =============================================================================


@dataclass
class ConfigurationError(ReviewGateError):
    """
    Raised when the reviewer policy or tool settings are unusable.

    Configuration errors are fatal and never retried. Evaluation does not
    proceed with partial or guessed data.
    """

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if self.code == 0:
            self.code = ERROR_CONFIGURATION


@dataclass
class PolicyValidationError(ConfigurationError):
    """Raised when the policy document does not match the schema."""

    source: str = ""
    validation_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            where = f" ({self.source})" if self.source else ""
            self.message = f"Invalid reviewer policy{where}: {self.validation_error}"
        if self.code == 0:
            self.code = ERROR_POLICY_INVALID
        super().__post_init__()
        self.context.update({
            "source": self.source,
            "validation_error": self.validation_error,
        })


@dataclass
class UndefinedTeamError(ConfigurationError):
    """
    Raised when a rule names a team that the policy does not define.

    Treating the team as empty would silently weaken the rule, so this is
    always a hard failure.
    """

    team: str = ""
    rule: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Rule '{self.rule}' references undefined team '{self.team}'"
        if self.code == 0:
            self.code = ERROR_POLICY_UNDEFINED_TEAM
        if not self.suggestion:
            self.suggestion = f"Add '{self.team}' to the teams section of the policy"
        super().__post_init__()
        self.context.update({
            "team": self.team,
            "rule": self.rule,
        })


@dataclass
class InvalidPatternError(ConfigurationError):
    """Raised when an override file pattern is not a valid regular expression."""

    pattern: str = ""
    override_index: int | None = None
    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Invalid override pattern {self.pattern!r}: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_POLICY_INVALID_PATTERN
        super().__post_init__()
        self.context.update({
            "pattern": self.pattern,
            "override_index": self.override_index,
            "underlying_error": self.underlying_error,
        })


@dataclass
class SettingsError(ConfigurationError):
    """Raised when a required setting is missing or malformed."""

    setting: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Missing or invalid setting: {self.setting}"
        if self.code == 0:
            self.code = ERROR_SETTINGS_INVALID
        super().__post_init__()
        self.context["setting"] = self.setting


# =============================================================================
# Input Errors
# =============================================================================


@dataclass
class InputUnavailableError(ReviewGateError):
    """
    Raised when one of the evaluation inputs cannot be obtained.

    This means "cannot evaluate", which is distinct from "evaluated and
    rejected".
    """

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if self.code == 0:
            self.code = ERROR_INPUT_UNAVAILABLE


@dataclass
class PolicyNotFoundError(InputUnavailableError):
    """Raised when the policy document is missing or empty."""

    path: str = ""
    ref: str | None = None

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            where = f"{self.path}@{self.ref}" if self.ref else self.path
            self.message = f"Unable to retrieve {where}"
        if self.code == 0:
            self.code = ERROR_POLICY_NOT_FOUND
        if not self.suggestion:
            self.suggestion = "Commit a reviewer policy at the configured path"
        super().__post_init__()
        self.context.update({
            "path": self.path,
            "ref": self.ref,
        })


@dataclass
class UnsupportedEventError(InputUnavailableError):
    """Raised when invoked for an event that does not identify a pull request."""

    event_name: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Action invoked on unexpected event type '{self.event_name}'"
        if self.code == 0:
            self.code = ERROR_UNSUPPORTED_EVENT
        if not self.suggestion:
            self.suggestion = "Trigger the workflow on pull_request or pull_request_review"
        super().__post_init__()
        self.context["event_name"] = self.event_name


@dataclass
class InputTruncatedError(InputUnavailableError):
    """Raised when a listing hit its data-source cap and partial input is refused."""

    inputs: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Refusing to evaluate truncated input: {', '.join(self.inputs)}"
        if self.code == 0:
            self.code = ERROR_INPUT_TRUNCATED
        if not self.suggestion:
            self.suggestion = "Split the pull request or disable fail-on-truncation"
        super().__post_init__()
        self.context["inputs"] = list(self.inputs)


# =============================================================================
# GitHub Errors
# =============================================================================


@dataclass
class GitHubError(InputUnavailableError):
    """
    Base class for GitHub API failures.

    Attributes:
        url: The request URL that failed
    """

    url: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if self.code == 0:
            self.code = ERROR_GITHUB
        super().__post_init__()
        self.context["url"] = self.url


@dataclass
class GitHubApiError(GitHubError):
    """Raised when the GitHub API answers with a non-success status."""

    status_code: int = 0
    response_text: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"GitHub API returned HTTP {self.status_code} for {self.url}"
        if self.code == 0:
            self.code = ERROR_GITHUB_API
        if not self.suggestion and self.status_code in (401, 403):
            self.suggestion = "Check that the token has pull-requests and contents access"
        super().__post_init__()
        self.context.update({
            "status_code": self.status_code,
            "response_text": self.response_text[:500],
        })


@dataclass
class GitHubConnectionError(GitHubError):
    """Raised when the GitHub API cannot be reached."""

    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Cannot reach GitHub API at {self.url}: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_GITHUB_CONNECTION
        super().__post_init__()
        self.context["underlying_error"] = self.underlying_error

"""
Runtime settings for reviewgate.

When running as a GitHub Action, inputs arrive as INPUT_<NAME> environment
variables (name upper-cased, dashes kept) and the workflow context as
GITHUB_* variables. ActionSettings collects them into one validated model
through pydantic-settings.
"""

from typing import Any

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from reviewgate.errors import SettingsError
from reviewgate.github.client import DEFAULT_API_URL
from reviewgate.schema import DEFAULT_POLICY_PATH


class ActionSettings(BaseSettings):
    """
    Settings for a GitHub Actions run.

    Attributes:
        github_token: Token used for API calls
        repository: Repository in owner/name form
        event_name: Name of the triggering workflow event
        event_path: Path of the event payload JSON
        api_url: GitHub API root
        config_path: Location of the policy file in the repository
        config_ref: Ref to read the policy from; empty means default branch
        post_review: Post an approving/rejecting review instead of failing
        fail_on_truncation: Refuse to evaluate listings that hit API caps
    """

    model_config = SettingsConfigDict(
        frozen=True,
        extra="forbid",
        env_ignore_empty=True,
        str_strip_whitespace=True,
    )

    github_token: str = Field(..., min_length=1, validation_alias="INPUT_GITHUB-TOKEN")
    repository: str = Field(
        ...,
        pattern=r"^[^/\s]+/[^/\s]+$",
        validation_alias="GITHUB_REPOSITORY",
    )
    event_name: str = Field(..., min_length=1, validation_alias="GITHUB_EVENT_NAME")
    event_path: str = Field(..., min_length=1, validation_alias="GITHUB_EVENT_PATH")
    api_url: str = Field(default=DEFAULT_API_URL, validation_alias="GITHUB_API_URL")
    config_path: str = Field(
        default=DEFAULT_POLICY_PATH,
        min_length=1,
        validation_alias="INPUT_CONFIG-PATH",
    )
    config_ref: str = Field(default="", validation_alias="INPUT_CONFIG-REF")
    post_review: bool = Field(default=False, validation_alias="INPUT_POST-REVIEW")
    fail_on_truncation: bool = Field(
        default=False,
        validation_alias="INPUT_FAIL-ON-TRUNCATION",
    )

    @classmethod
    def from_env(cls, **overrides: Any) -> "ActionSettings":
        """
        Build settings from the environment.

        Args:
            **overrides: Explicit values by field name that win over the
                environment; None values are ignored

        Raises:
            SettingsError: If a required value is missing or invalid
        """
        init = {ENV_VARS[k]: v for k, v in overrides.items() if v is not None}
        try:
            return cls(**init)
        except ValidationError as e:
            first = e.errors()[0]
            loc = ".".join(str(p) for p in first["loc"])
            setting = SETTING_NAMES.get(loc, loc)
            if first["type"] == "missing":
                raise SettingsError(
                    setting=setting,
                    suggestion=f"Set {loc} or pass it explicitly",
                ) from e
            raise SettingsError(
                setting=setting,
                message=f"Invalid setting {setting}: {first['msg']}",
            ) from e

    @property
    def policy_ref(self) -> str | None:
        """Ref to pass to the contents API, None for the default branch."""
        return self.config_ref or None


# setting name -> environment variable
ENV_VARS = {
    name: field.validation_alias for name, field in ActionSettings.model_fields.items()
}
SETTING_NAMES = {var: name for name, var in ENV_VARS.items()}

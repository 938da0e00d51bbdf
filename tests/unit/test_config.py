"""
Unit tests for runtime settings.
"""

import pytest

from reviewgate.config import ENV_VARS, ActionSettings
from reviewgate.errors import SettingsError
from reviewgate.github.client import DEFAULT_API_URL
from reviewgate.schema import DEFAULT_POLICY_PATH


@pytest.fixture
def action_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Environment as GitHub Actions would provide it, with optional inputs unset."""
    for var in ENV_VARS.values():
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("INPUT_GITHUB-TOKEN", "ghs_token")
    monkeypatch.setenv("GITHUB_REPOSITORY", "octo/widgets")
    monkeypatch.setenv("GITHUB_EVENT_NAME", "pull_request")
    monkeypatch.setenv("GITHUB_EVENT_PATH", "/tmp/event.json")
    return monkeypatch


class TestActionSettings:
    """Tests for ActionSettings.from_env."""

    def test_env_var_names(self) -> None:
        """Every setting is bound to its Actions variable."""
        assert ENV_VARS["github_token"] == "INPUT_GITHUB-TOKEN"
        assert ENV_VARS["fail_on_truncation"] == "INPUT_FAIL-ON-TRUNCATION"
        assert ENV_VARS["repository"] == "GITHUB_REPOSITORY"

    def test_defaults(self, action_env: pytest.MonkeyPatch) -> None:
        """Optional settings take their defaults."""
        settings = ActionSettings.from_env()
        assert settings.github_token == "ghs_token"
        assert settings.repository == "octo/widgets"
        assert settings.api_url == DEFAULT_API_URL
        assert settings.config_path == DEFAULT_POLICY_PATH
        assert settings.post_review is False
        assert settings.fail_on_truncation is False
        assert settings.policy_ref is None

    def test_action_inputs(self, action_env: pytest.MonkeyPatch) -> None:
        """Action inputs are read from INPUT_ variables."""
        action_env.setenv("INPUT_POST-REVIEW", "true")
        action_env.setenv("INPUT_CONFIG-REF", "main")
        action_env.setenv("INPUT_CONFIG-PATH", "policy/reviewers.yml")
        action_env.setenv("INPUT_FAIL-ON-TRUNCATION", "yes")
        action_env.setenv("GITHUB_API_URL", "https://ghe.example.com/api/v3")
        settings = ActionSettings.from_env()
        assert settings.post_review is True
        assert settings.policy_ref == "main"
        assert settings.config_path == "policy/reviewers.yml"
        assert settings.fail_on_truncation is True
        assert settings.api_url == "https://ghe.example.com/api/v3"

    @pytest.mark.parametrize(("value", "expected"), [("false", False), ("0", False), ("on", True)])
    def test_boolean_inputs(
        self, action_env: pytest.MonkeyPatch, value: str, expected: bool
    ) -> None:
        """Boolean inputs accept the usual spellings."""
        action_env.setenv("INPUT_POST-REVIEW", value)
        assert ActionSettings.from_env().post_review is expected

    def test_invalid_boolean(self, action_env: pytest.MonkeyPatch) -> None:
        """An unrecognised boolean is a settings error, not False."""
        action_env.setenv("INPUT_POST-REVIEW", "maybe")
        with pytest.raises(SettingsError) as exc_info:
            ActionSettings.from_env()
        assert exc_info.value.setting == "post_review"

    def test_overrides_win(self, action_env: pytest.MonkeyPatch) -> None:
        """Explicit values take precedence over the environment."""
        action_env.setenv("INPUT_POST-REVIEW", "true")
        settings = ActionSettings.from_env(post_review=False, config_ref="dev")
        assert settings.post_review is False
        assert settings.config_ref == "dev"

    def test_none_overrides_ignored(self, action_env: pytest.MonkeyPatch) -> None:
        """None overrides fall back to the environment."""
        action_env.setenv("INPUT_CONFIG-REF", "main")
        settings = ActionSettings.from_env(config_ref=None)
        assert settings.config_ref == "main"

    def test_empty_values_ignored(self, action_env: pytest.MonkeyPatch) -> None:
        """Empty inputs count as unset."""
        action_env.setenv("INPUT_CONFIG-PATH", "")
        settings = ActionSettings.from_env()
        assert settings.config_path == DEFAULT_POLICY_PATH

    @pytest.mark.parametrize(
        ("var", "setting"),
        [
            ("INPUT_GITHUB-TOKEN", "github_token"),
            ("GITHUB_REPOSITORY", "repository"),
            ("GITHUB_EVENT_NAME", "event_name"),
            ("GITHUB_EVENT_PATH", "event_path"),
        ],
    )
    def test_missing_required(
        self, action_env: pytest.MonkeyPatch, var: str, setting: str
    ) -> None:
        """Missing required settings are reported by name."""
        action_env.delenv(var)
        with pytest.raises(SettingsError) as exc_info:
            ActionSettings.from_env()
        assert exc_info.value.setting == setting
        assert var in (exc_info.value.suggestion or "")

    def test_malformed_repository(self, action_env: pytest.MonkeyPatch) -> None:
        """Repository must be owner/name."""
        action_env.setenv("GITHUB_REPOSITORY", "widgets")
        with pytest.raises(SettingsError) as exc_info:
            ActionSettings.from_env()
        assert exc_info.value.setting == "repository"
        assert exc_info.value.message.startswith("Invalid setting repository")

    def test_override_supplies_missing(self, action_env: pytest.MonkeyPatch) -> None:
        """A required value may come from an explicit override."""
        action_env.delenv("GITHUB_EVENT_NAME")
        settings = ActionSettings.from_env(event_name="pull_request_review")
        assert settings.event_name == "pull_request_review"

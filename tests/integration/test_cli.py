"""
Integration tests for the CLI.

Tests cover:
- check: verdicts, exit codes, JSON output, changeset files
- validate: valid and invalid policies
- run: the GitHub Actions entry point against a fake API
"""

import base64
import json
from pathlib import Path
from typing import Any

import httpx
import pytest
from typer.testing import CliRunner

from reviewgate import __version__, cli
from reviewgate.cli import EXIT_APPROVED, EXIT_ERROR, EXIT_REJECTED, app
from reviewgate.config import ENV_VARS
from reviewgate.github.client import GitHubClient

runner = CliRunner()


@pytest.fixture
def undefined_team_policy(temp_dir: Path) -> Path:
    """A policy whose rule names a team that does not exist."""
    path = temp_dir / "bad.json"
    path.write_text(json.dumps({
        "reviewers": {"src/": {"teams": ["ghosts"], "requiredApproverCount": 1}},
    }))
    return path


class TestVersion:
    """Tests for --version."""

    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout


class TestCheckCommand:
    """Tests for the check command."""

    def test_approved(self, sample_policy_file: Path) -> None:
        """Enough approvals exits 0."""
        result = runner.invoke(app, [
            "check", str(sample_policy_file),
            "-f", "docs/guide.md",
            "-a", "erin",
            "-c", "bob",
        ])
        assert result.exit_code == EXIT_APPROVED
        assert "APPROVED" in result.stdout

    def test_rejected(self, sample_policy_file: Path) -> None:
        """Missing approvals exits 1 and shows the diagnostic."""
        result = runner.invoke(app, [
            "check", str(sample_policy_file),
            "-f", "src/app.py",
            "-a", "alice",
            "-c", "bob",
        ])
        assert result.exit_code == EXIT_REJECTED
        assert "CHANGES REQUIRED" in result.stdout
        assert "Modified Files:" in result.stdout

    def test_json_output(self, sample_policy_file: Path) -> None:
        """--json prints only the report."""
        result = runner.invoke(app, [
            "check", str(sample_policy_file),
            "-f", "src/app.py",
            "-a", "alice",
            "-a", "carol",
            "--json",
        ])
        assert result.exit_code == EXIT_APPROVED
        data = json.loads(result.stdout)
        assert data["approved"] is True
        assert data["rules"][0]["relevant_approvals"] == ["alice", "carol"]

    def test_override_by_committer(self, sample_policy_file: Path) -> None:
        """Bot-only commits are waved through."""
        result = runner.invoke(app, [
            "check", str(sample_policy_file),
            "-f", "src/app.py",
            "-c", "renovate-bot",
            "--json",
        ])
        assert result.exit_code == EXIT_APPROVED
        data = json.loads(result.stdout)
        assert data["override"]["index"] == 0

    def test_unresolved_committer(self, sample_policy_file: Path) -> None:
        """An unresolved committer defeats a user-based override."""
        result = runner.invoke(app, [
            "check", str(sample_policy_file),
            "-f", "src/app.py",
            "-c", "renovate-bot",
            "--unresolved-committer",
            "--json",
        ])
        assert result.exit_code == EXIT_REJECTED

    def test_changeset_file(self, sample_policy_file: Path, temp_dir: Path) -> None:
        """A changeset file is merged with command-line values."""
        changeset = temp_dir / "change.json"
        changeset.write_text(json.dumps({
            "modified_files": ["src/app.py"],
            "approvals": ["alice"],
            "committers": ["bob"],
        }))
        result = runner.invoke(app, [
            "check", str(sample_policy_file),
            "--changeset", str(changeset),
            "-a", "dave",
            "--json",
        ])
        assert result.exit_code == EXIT_APPROVED
        data = json.loads(result.stdout)
        assert data["rules"][0]["relevant_approvals"] == ["alice", "dave"]

    def test_invalid_changeset(self, sample_policy_file: Path, temp_dir: Path) -> None:
        """A malformed changeset is an input error."""
        changeset = temp_dir / "change.json"
        changeset.write_text(json.dumps({"files": ["a"]}))
        result = runner.invoke(app, [
            "check", str(sample_policy_file),
            "--changeset", str(changeset),
            "--json",
        ])
        assert result.exit_code == EXIT_ERROR
        data = json.loads(result.stdout)
        assert data["error"] is True
        assert data["code"] == 2000

    def test_changeset_truncation_reported(self, sample_policy_file: Path, temp_dir: Path) -> None:
        """Truncation declared in a changeset file shows up as a warning."""
        changeset = temp_dir / "change.json"
        changeset.write_text(json.dumps({
            "modified_files": ["docs/guide.md"],
            "approvals": ["erin"],
            "truncated": ["files"],
        }))
        result = runner.invoke(app, [
            "check", str(sample_policy_file),
            "--changeset", str(changeset),
            "--json",
        ])
        assert result.exit_code == EXIT_APPROVED
        warnings = json.loads(result.stdout)["warnings"]
        assert len(warnings) == 1
        assert warnings[0].startswith("files list hit the data source limit")

    def test_non_utf8_changeset(self, sample_policy_file: Path, temp_dir: Path) -> None:
        """An undecodable changeset file is an input error."""
        changeset = temp_dir / "change.json"
        changeset.write_bytes(b'{"modified_files": ["\xff"]}')
        result = runner.invoke(app, [
            "check", str(sample_policy_file),
            "--changeset", str(changeset),
            "--json",
        ])
        assert result.exit_code == EXIT_ERROR
        assert json.loads(result.stdout)["code"] == 2000

    def test_directory_policy(self, temp_dir: Path) -> None:
        """A directory given as the policy is an error, not a rejection."""
        result = runner.invoke(app, ["check", str(temp_dir), "-f", "src/a.py"])
        assert result.exit_code == EXIT_ERROR

    def test_non_utf8_policy(self, temp_dir: Path) -> None:
        """An undecodable policy file is a configuration error."""
        policy = temp_dir / "reviewers.json"
        policy.write_bytes(b'{"reviewers": {"\xff/": {"requiredApproverCount": 1}}}')
        result = runner.invoke(app, ["check", str(policy), "-f", "src/a.py", "--json"])
        assert result.exit_code == EXIT_ERROR
        data = json.loads(result.stdout)
        assert data["error_type"] == "PolicyValidationError"
        assert data["code"] == 1001

    def test_undefined_team(self, undefined_team_policy: Path) -> None:
        """Configuration errors exit 2."""
        result = runner.invoke(app, [
            "check", str(undefined_team_policy),
            "-f", "src/app.py",
        ])
        assert result.exit_code == EXIT_ERROR
        assert "E1002" in result.stdout

    def test_missing_policy_file(self, temp_dir: Path) -> None:
        """A nonexistent policy path is a usage error."""
        result = runner.invoke(app, ["check", str(temp_dir / "absent.json")])
        assert result.exit_code != 0


class TestValidateCommand:
    """Tests for the validate command."""

    def test_valid_policy(self, sample_policy_file: Path) -> None:
        result = runner.invoke(app, ["validate", str(sample_policy_file)])
        assert result.exit_code == 0
        assert "Policy is valid" in result.stdout

    def test_valid_policy_json(self, sample_policy_file: Path) -> None:
        result = runner.invoke(app, ["validate", str(sample_policy_file), "--json"])
        assert result.exit_code == 0
        assert json.loads(result.stdout) == {
            "valid": True,
            "rules": 2,
            "teams": 2,
            "overrides": 2,
        }

    def test_directory_policy(self, temp_dir: Path) -> None:
        result = runner.invoke(app, ["validate", str(temp_dir)])
        assert result.exit_code == EXIT_ERROR

    def test_invalid_policy_json(self, undefined_team_policy: Path) -> None:
        result = runner.invoke(app, ["validate", str(undefined_team_policy), "--json"])
        assert result.exit_code == EXIT_ERROR
        data = json.loads(result.stdout)
        assert data["error_type"] == "UndefinedTeamError"
        assert data["context"]["team"] == "ghosts"


class TestRunCommand:
    """Tests for the run command."""

    @pytest.fixture
    def action_env(self, temp_dir: Path) -> dict[str, Any]:
        """Environment for a pull_request run; unrelated inputs unset."""
        event = temp_dir / "event.json"
        event.write_text(json.dumps({"number": 5}))
        env: dict[str, Any] = {var: None for var in ENV_VARS.values()}
        env.update({
            "INPUT_GITHUB-TOKEN": "t",
            "GITHUB_REPOSITORY": "octo/widgets",
            "GITHUB_EVENT_NAME": "pull_request",
            "GITHUB_EVENT_PATH": str(event),
        })
        return env

    @pytest.fixture
    def fake_api(self, monkeypatch: pytest.MonkeyPatch, sample_policy_json: str) -> list[dict]:
        """Route the CLI's GitHub client to an in-memory API; returns posted reviews."""
        posted: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            path = request.url.path
            if "/contents/" in path:
                content = base64.b64encode(sample_policy_json.encode()).decode()
                return httpx.Response(200, json={"content": content})
            if path.endswith("/files"):
                return httpx.Response(200, json=[{"filename": "docs/guide.md"}])
            if path.endswith("/reviews") and request.method == "POST":
                posted.append(json.loads(request.content))
                return httpx.Response(200, json={"id": 1})
            if path.endswith("/reviews"):
                return httpx.Response(200, json=[])
            if path.endswith("/commits"):
                return httpx.Response(200, json=[{"committer": {"login": "bob"}}])
            return httpx.Response(404, json={})

        def make_client(token: str, base_url: str) -> GitHubClient:
            http_client = httpx.Client(
                transport=httpx.MockTransport(handler),
                base_url=base_url,
            )
            return GitHubClient(token, base_url=base_url, http_client=http_client)

        monkeypatch.setattr(cli, "GitHubClient", make_client)
        return posted

    def test_rejected_without_review(self, action_env: dict, fake_api: list) -> None:
        """Without post-review a rejection fails the step."""
        result = runner.invoke(app, ["run", "--json"], env=action_env)
        assert result.exit_code == EXIT_REJECTED
        assert json.loads(result.stdout)["approved"] is False
        assert fake_api == []

    def test_rejected_with_review(self, action_env: dict, fake_api: list) -> None:
        """With post-review the rejection is posted and the step succeeds."""
        result = runner.invoke(app, ["run", "--post-review", "--json"], env=action_env)
        assert result.exit_code == EXIT_APPROVED
        assert fake_api == [{"event": "REQUEST_CHANGES", "body": "Missing required reviewers"}]

    def test_post_review_from_input(self, action_env: dict, fake_api: list) -> None:
        """The post-review action input is honored."""
        action_env["INPUT_POST-REVIEW"] = "true"
        result = runner.invoke(app, ["run", "--json"], env=action_env)
        assert result.exit_code == EXIT_APPROVED
        assert len(fake_api) == 1

    def test_missing_settings(self, action_env: dict, fake_api: list) -> None:
        """Missing environment is a configuration error."""
        action_env["INPUT_GITHUB-TOKEN"] = None
        result = runner.invoke(app, ["run", "--json"], env=action_env)
        assert result.exit_code == EXIT_ERROR
        data = json.loads(result.stdout)
        assert data["error_type"] == "SettingsError"
        assert data["context"]["setting"] == "github_token"

"""
Pytest configuration and fixtures for reviewgate tests.

This module provides shared fixtures used across unit and integration tests.
"""

import json
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from reviewgate.schema import ReviewPolicy, load_policy_from_string


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_policy_json() -> str:
    """Return a policy exercising teams, users and overrides."""
    return json.dumps({
        "teams": {
            "core-team": {
                "description": "Core maintainers",
                "users": ["carol", "dave"],
            },
            "docs-team": {
                "users": ["erin"],
            },
        },
        "reviewers": {
            "src/": {
                "description": "Application code",
                "users": ["alice"],
                "teams": ["core-team"],
                "requiredApproverCount": 2,
            },
            "docs/": {
                "teams": ["docs-team"],
                "requiredApproverCount": 1,
            },
        },
        "overrides": [
            {
                "description": "Dependency bot",
                "onlyModifiedByUsers": ["renovate-bot"],
            },
            {
                "description": "Lock files only",
                "onlyModifiedFileRegExs": [r"(^|/)package-lock\.json$", r"\.lock$"],
            },
        ],
    })


@pytest.fixture
def sample_policy(sample_policy_json: str) -> ReviewPolicy:
    """The sample policy, parsed."""
    return load_policy_from_string(sample_policy_json)


@pytest.fixture
def sample_policy_file(temp_dir: Path, sample_policy_json: str) -> Path:
    """The sample policy written to disk."""
    path = temp_dir / "reviewers.json"
    path.write_text(sample_policy_json)
    return path

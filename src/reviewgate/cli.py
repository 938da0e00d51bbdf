"""
CLI entry point for reviewgate.

This module provides the Typer-based command-line interface for reviewgate.

Commands:
    check       Evaluate a change described on the command line against a policy
    validate    Check that a policy file is well formed
    run         Evaluate the pull request of the current GitHub Actions run

Exit codes:
    0   Approved (or, for run with --post-review, a verdict was posted)
    1   Review requirements not met
    2   The policy or an input could not be used

Architecture Note:
    The CLI is intentionally thin. It parses arguments and delegates to the
    policy engine and runner, so the same logic is usable as a library.
"""

import json
import traceback
from pathlib import Path
from typing import Annotated, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from reviewgate import __version__
from reviewgate.config import ActionSettings
from reviewgate.errors import InputUnavailableError, ReviewGateError
from reviewgate.github import GitHubClient
from reviewgate.log import configure_logging
from reviewgate.policy import ReviewPolicyEngine
from reviewgate.report import generate_console_report, generate_json_report
from reviewgate.runner import ReviewRunner
from reviewgate.schema import ChangeSet, ReviewPolicy, load_policy

EXIT_APPROVED = 0
EXIT_REJECTED = 1
EXIT_ERROR = 2

app = typer.Typer(
    name="reviewgate",
    help="Enforce path-based required reviewers on pull requests.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold]reviewgate[/bold] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """
    reviewgate - required reviewers for pull requests.

    Evaluates a change against a reviewer policy that maps path prefixes to
    required approvers, with overrides for trusted automation.
    """
    pass


@app.command()
def check(
    policy_path: Annotated[
        Path,
        typer.Argument(
            help="Path to the reviewer policy (JSON or YAML).",
            exists=True,
            dir_okay=False,
            readable=True,
            resolve_path=True,
        ),
    ],
    files: Annotated[
        Optional[list[str]],
        typer.Option("--file", "-f", help="Modified file path (repeatable)."),
    ] = None,
    approvals: Annotated[
        Optional[list[str]],
        typer.Option("--approval", "-a", help="User who approved (repeatable)."),
    ] = None,
    committers: Annotated[
        Optional[list[str]],
        typer.Option("--committer", "-c", help="Commit author login (repeatable)."),
    ] = None,
    unresolved_committer: Annotated[
        bool,
        typer.Option(
            "--unresolved-committer",
            help="Add a commit whose author has no resolvable identity.",
        ),
    ] = False,
    changeset_path: Annotated[
        Optional[Path],
        typer.Option(
            "--changeset",
            help="JSON file with modified_files, approvals and committers.",
            exists=True,
            dir_okay=False,
            readable=True,
            resolve_path=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Show unmatched rules and debug logging."),
    ] = False,
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Enable debug mode with full error tracebacks."),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output results in JSON format."),
    ] = False,
) -> None:
    """
    Evaluate a change against a reviewer policy.

    Example:
        $ reviewgate check .github/reviewers.json -f src/app.py -a alice -c alice
    """
    configure_logging(verbose, quiet=json_output)

    try:
        policy = load_policy(policy_path)
        change = _build_changeset(
            changeset_path,
            files or [],
            approvals or [],
            committers or [],
            unresolved_committer,
        )
        result = ReviewPolicyEngine(policy).evaluate(change)
    except ReviewGateError as e:
        _report_error(e, json_output, debug)
        raise typer.Exit(code=EXIT_ERROR)

    if json_output:
        print(generate_json_report(result))
    else:
        generate_console_report(result, console=console, verbose=verbose)

    raise typer.Exit(code=EXIT_APPROVED if result.approved else EXIT_REJECTED)


def _build_changeset(
    changeset_path: Path | None,
    files: list[str],
    approvals: list[str],
    committers: list[str],
    unresolved_committer: bool,
) -> ChangeSet:
    """Merge a changeset file with command-line values."""
    base = ChangeSet()
    if changeset_path is not None:
        try:
            data = json.loads(changeset_path.read_text(encoding="utf-8"))
            base = ChangeSet.model_validate(data)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, ValidationError) as e:
            raise InputUnavailableError(
                message=f"Invalid changeset {changeset_path}: {e}",
            ) from e

    all_committers: list[str | None] = [*base.committers, *committers]
    if unresolved_committer:
        all_committers.append(None)

    return ChangeSet(
        modified_files=[*base.modified_files, *files],
        approvals=base.approvals | frozenset(approvals),
        committers=all_committers,
        truncated=base.truncated,
    )


@app.command()
def validate(
    policy_path: Annotated[
        Path,
        typer.Argument(
            help="Path to the reviewer policy (JSON or YAML).",
            exists=True,
            dir_okay=False,
            readable=True,
            resolve_path=True,
        ),
    ],
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Enable debug mode with full error tracebacks."),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output results in JSON format."),
    ] = False,
) -> None:
    """
    Validate a reviewer policy without evaluating anything.

    Checks the schema, that every referenced team exists, and that every
    override pattern compiles.
    """
    try:
        policy = load_policy(policy_path)
    except ReviewGateError as e:
        _report_error(e, json_output, debug)
        raise typer.Exit(code=EXIT_ERROR)

    if json_output:
        print(json.dumps({
            "valid": True,
            "rules": len(policy.reviewers),
            "teams": len(policy.teams),
            "overrides": len(policy.overrides),
        }, indent=2))
    else:
        _display_policy(policy)


def _display_policy(policy: ReviewPolicy) -> None:
    """Show a summary of a valid policy."""
    console.print("[green]✓[/green] Policy is valid")
    console.print()

    table = Table(show_header=True, header_style="bold")
    table.add_column("Prefix", style="cyan")
    table.add_column("Required", justify="right")
    table.add_column("Users")
    table.add_column("Teams")

    for prefix, rule in policy.reviewers.items():
        table.add_row(
            escape(prefix) or "[dim](all)[/dim]",
            str(rule.required_approver_count),
            escape(", ".join(rule.users)),
            escape(", ".join(rule.teams)),
        )

    console.print(table)
    console.print(
        f"[dim]Rules: {len(policy.reviewers)} | Teams: {len(policy.teams)} "
        f"| Overrides: {len(policy.overrides)}[/dim]"
    )


@app.command()
def run(
    post_review: Annotated[
        Optional[bool],
        typer.Option(
            "--post-review/--no-post-review",
            help="Post an approving or change-requesting review. Defaults to INPUT_POST-REVIEW.",
        ),
    ] = None,
    config_ref: Annotated[
        Optional[str],
        typer.Option(
            "--config-ref",
            help="Ref to read the policy from. Defaults to the repository default branch.",
        ),
    ] = None,
    config_path: Annotated[
        Optional[str],
        typer.Option("--config-path", help="Policy location within the repository."),
    ] = None,
    fail_on_truncation: Annotated[
        Optional[bool],
        typer.Option(
            "--fail-on-truncation/--allow-truncation",
            help="Refuse to evaluate when GitHub listing limits were reached.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Enable debug logging."),
    ] = False,
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Enable debug mode with full error tracebacks."),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output results in JSON format."),
    ] = False,
) -> None:
    """
    Evaluate the pull request of the current GitHub Actions run.

    Reads GITHUB_REPOSITORY, GITHUB_EVENT_NAME, GITHUB_EVENT_PATH and the
    action inputs from the environment.
    """
    configure_logging(verbose, quiet=json_output)

    try:
        settings = ActionSettings.from_env(
            post_review=post_review,
            config_ref=config_ref,
            config_path=config_path,
            fail_on_truncation=fail_on_truncation,
        )
        with GitHubClient(settings.github_token, base_url=settings.api_url) as client:
            outcome = ReviewRunner(settings, client).run()
    except ReviewGateError as e:
        _report_error(e, json_output, debug)
        raise typer.Exit(code=EXIT_ERROR)
    except Exception as e:
        if json_output:
            _output_json_error("unexpected_error", str(e), debug)
        else:
            console.print(f"[red]Unexpected error: {escape(str(e))}[/red]")
            if debug:
                console.print(f"[dim]{traceback.format_exc()}[/dim]")
        raise typer.Exit(code=EXIT_ERROR)

    if json_output:
        print(generate_json_report(outcome.result))
    else:
        generate_console_report(outcome.result, console=console, verbose=verbose)
        if not outcome.result.approved and outcome.review_posted is None:
            console.print("[red]Missing required approvals.[/red]")

    raise typer.Exit(code=EXIT_APPROVED if outcome.success else EXIT_REJECTED)


def _report_error(error: ReviewGateError, json_output: bool, debug: bool) -> None:
    """Print a reviewgate error in the requested format."""
    if json_output:
        output = {"error": True, **error.to_dict()}
        if debug:
            output["traceback"] = traceback.format_exc()
        print(json.dumps(output, indent=2, default=str))
    else:
        console.print(str(error), style="red", markup=False)
        if debug:
            console.print(f"[dim]{traceback.format_exc()}[/dim]")


def _output_json_error(error_type: str, message: str, include_traceback: bool = False) -> None:
    """Output an unexpected error in JSON format."""
    output = {
        "error": True,
        "error_type": error_type,
        "message": message,
    }
    if include_traceback:
        output["traceback"] = traceback.format_exc()
    print(json.dumps(output, indent=2))


if __name__ == "__main__":
    app()

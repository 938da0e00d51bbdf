"""
Console report generator for reviewgate.

Renders an EvaluationResult with Rich: a verdict header, one table row per
rule, and the full diagnostic for every failing rule so the operator can
see exactly which approvals are missing.
"""

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from reviewgate.schema import EvaluationResult, RuleResult

# Status icons
ICON_PASSED = "[green]✓[/green]"
ICON_FAILED = "[red]✗[/red]"
ICON_SKIPPED = "[dim]○[/dim]"


def generate_console_report(
    result: EvaluationResult,
    console: Console | None = None,
    verbose: bool = False,
) -> None:
    """
    Print a console report for an evaluation.

    Args:
        result: The evaluation to report on
        console: Rich Console instance (creates one if not provided)
        verbose: Also list rules that matched no modified files
    """
    if console is None:
        console = Console()

    _print_header(console, result)
    console.print()

    _print_rules(console, result.rule_results, verbose)

    failed = result.failed_rules()
    if failed:
        console.print()
        for rule in failed:
            console.print(
                Panel(
                    escape(rule.diagnostic),
                    title=f"[red]{escape(rule.prefix)}[/red]",
                    title_align="left",
                    expand=False,
                )
            )

    for warning in result.warnings:
        console.print(f"[yellow]Warning: {escape(warning)}[/yellow]")


def _print_header(console: Console, result: EvaluationResult) -> None:
    """Print the verdict header."""
    header = Text()
    if result.approved:
        header.append(" APPROVED ", style="bold green")
    else:
        header.append(" CHANGES REQUIRED ", style="bold red")

    if result.override is not None:
        header.append("│ ", style="dim")
        label = result.override.description or f"override #{result.override.index}"
        header.append(f"via override: {label}", style="yellow")

    console.print(Panel(header, expand=False))


def _print_rules(console: Console, rules: list[RuleResult], verbose: bool) -> None:
    """Print one row per rule."""
    shown = [r for r in rules if r.matched or verbose]
    if not shown:
        console.print("[dim]No rule matched the modified files.[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Status", width=6, justify="center")
    table.add_column("Prefix", style="cyan")
    table.add_column("Files", justify="right")
    table.add_column("Approvals", justify="right")
    table.add_column("Approved by", overflow="fold")

    for rule in shown:
        if not rule.matched:
            icon = ICON_SKIPPED
        elif rule.passed:
            icon = ICON_PASSED
        else:
            icon = ICON_FAILED

        table.add_row(
            icon,
            escape(rule.prefix) or "[dim](all)[/dim]",
            str(len(rule.affected_files)),
            f"{len(rule.relevant_approvals)}/{rule.required_approver_count}",
            escape(", ".join(rule.relevant_approvals)),
        )

    console.print(table)

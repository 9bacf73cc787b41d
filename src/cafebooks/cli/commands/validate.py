"""Data validation command."""

import click
from cafebooks.cli.session import get_state
from cafebooks.domain.validation import ERROR, ValidationService


@click.command("validate")
@click.option("--errors-only", is_flag=True, help="Only show errors")
@click.pass_context
def validate(ctx, errors_only: bool):
    """Scan the store for data problems.

    Exits with status 1 when errors are found.

    Examples:
        cafebooks validate
    """
    issues = ValidationService(get_state(ctx)).run()
    if errors_only:
        issues = [issue for issue in issues if issue.severity == ERROR]

    if not issues:
        click.echo("No issues found.")
        return

    for issue in issues:
        field = f".{issue.field}" if issue.field else ""
        click.echo(f"[{issue.severity}] {issue.type} {issue.entity}{field} {issue.entity_id}: {issue.message}")
        if issue.suggestion:
            click.echo(f"    -> {issue.suggestion}")

    error_count = sum(1 for issue in issues if issue.severity == ERROR)
    click.echo(f"\n{len(issues)} issue{'s' if len(issues) != 1 else ''}, {error_count} error{'s' if error_count != 1 else ''}")
    if error_count:
        ctx.exit(1)


def register_commands(cli):
    """Register validate command with main CLI."""
    cli.add_command(validate)

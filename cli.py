import asyncio
import os
import stat
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from config.logic import load_and_merge_configs
from config.models import Config
from core.contracts.models import CodeReviewResult, ReviewRequest, ReviewStatus
from core.git.selection import parse_review_type
from core.pipeline import run_review
from core.reporting.factory import REPORT_FORMATS, get_reporter
from core.strategies.factory import available_strategies, requires_backend
from utils.errors import AIReviewException
from utils.git import get_hooks_dir, is_git_repository
from utils.logger import setup_logger, logger

HOOK_NAME = "pre-commit"
HOOK_MARKER = "Managed by aireview"

HOOK_SCRIPT = """#!/bin/sh
# aireview git hook. Managed by aireview.

# Review the staged files and block the commit when issues are found.
# The command will internally decide whether to run.
exec aireview review --type staged --fail-on-issues --from-hook
"""

EXIT_ERROR = 1
EXIT_ISSUES = 2


def apply_cli_overrides(config: Config, analysis: Optional[str], concurrency: Optional[int], report_format: Optional[str]) -> Config:
    """Applies CLI options to the loaded config"""
    if analysis:
        config.review.analysis_type = analysis
        logger.info(f"Overriding analysis type: {analysis}")
    if concurrency is not None:
        config.analysis.concurrency = concurrency
        logger.info(f"Overriding concurrency: {concurrency}")
    if report_format:
        config.output.format = report_format
    return config


def has_findings(result: CodeReviewResult) -> bool:
    """True when any reviewed file reports issues or any file could not be reviewed."""
    for file in result.files:
        if file.status in (ReviewStatus.ERROR, ReviewStatus.INACCESSIBLE):
            return True
        if file.status == ReviewStatus.REVIEWED and file.analysis and file.analysis.issue_count > 0:
            return True
    return False


@click.group(invoke_without_command=True)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Enable verbose logging for debugging",
)
@click.pass_context
def cli(ctx, verbose: bool):
    """
    AI-assisted code review for the changed files of a Git repository.

    Runs 'review' when no subcommand is given.
    """
    setup_logger(log_level="DEBUG" if verbose else "WARNING")
    ctx.obj = {'verbose': verbose}

    if ctx.invoked_subcommand is None:
        ctx.invoke(review)


@cli.command("review")
@click.option("--repo", "repo", type=click.Path(file_okay=False), default=".", show_default=True, help="Repository to review")
@click.option("--type", "review_type", type=click.Choice(["staged", "modified", "full"]), help="Which changed files to review")
@click.option("--analysis", type=str, help="Analysis strategy (see 'aireview strategies')")
@click.option("--no-suggestions", is_flag=True, default=False, help="Leave suggestions out of the results")
@click.option("--format", "report_format", type=click.Choice(list(REPORT_FORMATS)), help="Report format")
@click.option(
    "-c", "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to a custom configuration file",
)
@click.option("--concurrency", type=int, help="Number of files analysed at the same time (1-16)")
@click.option("--fail-on-issues", is_flag=True, default=False, help="Exit with status 2 when issues are found")
@click.option("--from-hook", is_flag=True, default=False, hidden=True, help="Called from the git hook. Internal use.")
@click.pass_context
def review(
    ctx,
    repo: str,
    review_type: Optional[str],
    analysis: Optional[str],
    no_suggestions: bool,
    report_format: Optional[str],
    config_path: Optional[str],
    concurrency: Optional[int],
    fail_on_issues: bool,
    from_hook: bool,
):
    """
    Review the changed files of a repository.
    """
    console = Console(stderr=True)
    verbose = (ctx.obj or {}).get('verbose', False)

    try:
        config = load_and_merge_configs(custom_config_path=config_path, start_dir=Path(repo))
        setup_logger(log_level="DEBUG" if verbose else config.log.level, log_file=config.log.file)

        if from_hook:
            if not config.hook.enabled:
                return
            fail_on_issues = fail_on_issues and config.hook.fail_on_issues

        config = apply_cli_overrides(config, analysis, concurrency, report_format)
        request = ReviewRequest(
            repository_path=repo,
            review_type=review_type or config.review.review_type,
            include_suggestions=config.review.include_suggestions and not no_suggestions,
            analysis_type=config.review.analysis_type,
        )
        reporter = get_reporter(config.output.format, config.output)

        label = parse_review_type(request.review_type).value
        with console.status(f"[bold green]Reviewing {label} files with '{request.analysis_type}'...[/bold green]"):
            result = asyncio.run(run_review(config, request))

        click.echo(reporter.render(result))

    except AIReviewException as e:
        logger.error(f"A known error occurred: {e}")
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        ctx.exit(EXIT_ERROR)
    except Exception as e:
        # the message of a foreign exception may carry file content or credentials
        logger.error(f"An unexpected error occurred: {type(e).__name__}")
        logger.opt(exception=e).debug(f"Details of the unexpected error: {e}")
        console.print(f"[bold red]An unexpected error occurred:[/bold red] {type(e).__name__}. Run with --verbose for details.")
        ctx.exit(EXIT_ERROR)

    if fail_on_issues and has_findings(result):
        if from_hook:
            console.print("[bold red]aireview found issues in the staged files. Commit aborted.[/bold red]")
        ctx.exit(EXIT_ISSUES)


@cli.command("strategies")
def strategies():
    """
    List the available analysis strategies.
    """
    console = Console()
    table = Table(title="Analysis strategies")
    table.add_column("Tag", style="cyan")
    table.add_column("Needs backend")
    for tag in available_strategies():
        table.add_row(tag, "yes" if requires_backend(tag) else "no")
    console.print(table)


@cli.command("install-hook")
@click.option("--repo", "repo", type=click.Path(file_okay=False), default=".", help="Repository to install the hook into")
@click.option("--force", is_flag=True, default=False, help="Overwrite a pre-commit hook not managed by aireview")
def install_hook(repo: str, force: bool):
    """
    Install a git pre-commit hook that reviews staged files.
    """
    console = Console()
    if not is_git_repository(repo):
        console.print("[bold red]Error:[/bold red] Not a Git repository.")
        raise SystemExit(EXIT_ERROR)

    hooks_dir = get_hooks_dir(repo)
    hook_path = os.path.join(hooks_dir, HOOK_NAME)

    if not os.path.exists(hooks_dir):
        os.makedirs(hooks_dir)

    if os.path.exists(hook_path) and not force:
        with open(hook_path, "r", encoding="utf-8") as f:
            content = f.read()
        if HOOK_MARKER not in content:
            console.print(f"[bold yellow]Warning:[/bold yellow] A custom '{HOOK_NAME}' hook already exists.")
            if not click.confirm("Overwrite it? (back it up first)"):
                return

    with open(hook_path, "w", encoding="utf-8") as f:
        f.write(HOOK_SCRIPT)

    st = os.stat(hook_path)
    os.chmod(hook_path, st.st_mode | stat.S_IEXEC)

    console.print("[bold green]✅ Git hook installed![/bold green]")
    console.print("Staged files will now be reviewed on every 'git commit'.")


@cli.command("uninstall-hook")
@click.option("--repo", "repo", type=click.Path(file_okay=False), default=".", help="Repository to remove the hook from")
def uninstall_hook(repo: str):
    """
    Remove the aireview git hook.
    """
    console = Console()
    if not is_git_repository(repo):
        console.print("[bold red]Error:[/bold red] Not a Git repository.")
        raise SystemExit(EXIT_ERROR)

    hook_path = os.path.join(get_hooks_dir(repo), HOOK_NAME)

    if os.path.exists(hook_path):
        with open(hook_path, "r", encoding="utf-8") as f:
            content = f.read()

        if HOOK_MARKER in content:
            os.remove(hook_path)
            console.print("[bold green]✅ Git hook removed![/bold green]")
        else:
            console.print(f"[bold yellow]Warning:[/bold yellow] The '{HOOK_NAME}' hook was not installed by aireview. Remove it manually.")
    else:
        console.print("[yellow]No aireview git hook found.[/yellow]")


if __name__ == "__main__":
    cli()

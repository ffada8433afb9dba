"""repo-digest CLI - turn a git repository into an LLM-ready Markdown digest.

Usage:
    repo-digest analyze <repo-url-or-path> [options]
    repo-digest analyze . --depth 5 --no-content
    repo-digest analyze https://github.com/pallets/click --output-file click.md
"""

from __future__ import annotations

import json
import time
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from . import __version__
from .config import (
    DEFAULT_IGNORE_PATTERNS,
    DEFAULT_MAX_COMMITS,
    DEFAULT_MAX_FILE_SIZE_KB,
    MAX_SCAN_DEPTH,
    AnalysisOptions,
)
from .log import console as log_console
from .log import setup_logging
from .models import AnalysisResult, DirectoryNode, RepositoryReference
from .pipeline import AnalysisCancelled, analyze_repository
from .workspace import AcquisitionError

console = Console()


@click.group()
@click.version_option(version=__version__)
def cli():
    """repo-digest - repository context extraction for LLMs.

    Clones (or reuses) a repository, reads its recent history, the changes
    of the latest commit and its file tree, and renders a Markdown digest.
    """
    pass


@cli.command()
@click.argument("repository")
@click.option("--output-file", "-o", type=click.Path(dir_okay=False), default=None, help="Write the digest to a file instead of stdout")
@click.option("--commit", "-c", default=None, help="Analyze history up to this commit (default: HEAD)")
@click.option("--depth", "-d", type=click.IntRange(min=0), default=DEFAULT_MAX_COMMITS, show_default=True, help="Number of commits to read")
@click.option("--max-file-size", type=click.IntRange(min=0), default=DEFAULT_MAX_FILE_SIZE_KB, show_default=True, help="Largest file (KB) whose content is captured; 0 disables the limit")
@click.option("--ignore", "-i", multiple=True, help="Path substring to skip; repeatable (replaces the defaults)")
@click.option("--no-content", is_flag=True, help="List files without reading their content")
@click.option("--max-depth", type=click.IntRange(min=1), default=MAX_SCAN_DEPTH, show_default=True, help="Deepest directory level scanned")
@click.option("--local-path", type=click.Path(file_okay=False), default=None, help="Use or create the working copy at this path")
@click.option("--workdir", type=click.Path(file_okay=False), default=None, help="Parent directory for clones")
@click.option("--keep", is_flag=True, help="Keep the cloned working copy afterwards")
@click.option("--timeout", type=float, default=None, help="Give up after this many seconds")
@click.option("--remote-metadata", is_flag=True, help="Fill description/default branch from the GitHub API")
@click.option("--github-token", envvar="GITHUB_TOKEN", default=None, help="Token for the GitHub API")
@click.option("--json", "json_out", is_flag=True, help="Print the full context as JSON")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
def analyze(
    repository: str,
    output_file: str | None,
    commit: str | None,
    depth: int,
    max_file_size: int,
    ignore: tuple[str, ...],
    no_content: bool,
    max_depth: int,
    local_path: str | None,
    workdir: str | None,
    keep: bool,
    timeout: float | None,
    remote_metadata: bool,
    github_token: str | None,
    json_out: bool,
    verbose: bool,
):
    """Analyze REPOSITORY (a clone URL or a local path) and print its digest.

    Examples:

        repo-digest analyze https://github.com/pallets/click

        repo-digest analyze . --depth 3 --no-content

        repo-digest analyze ./project --json > context.json
    """
    setup_logging("DEBUG" if verbose else None)

    reference = RepositoryReference(url=repository, commit=commit, local_path=local_path)
    options = AnalysisOptions(
        max_commits=depth,
        max_file_size_kb=max_file_size or None,
        ignore_patterns=tuple(ignore) or DEFAULT_IGNORE_PATTERNS,
        include_content=not no_content,
        max_depth=max_depth,
        workdir=Path(workdir) if workdir else None,
        keep_clone=keep,
        remote_metadata=remote_metadata,
        github_token=github_token,
    )
    deadline = time.monotonic() + timeout if timeout else None

    if not json_out:
        log_console.print(Panel.fit(
            f"[bold cyan]repo-digest v{__version__}[/] - analyzing {repository}",
            border_style="cyan",
        ))

    try:
        result = analyze_repository(reference, options, deadline=deadline)
    except AcquisitionError as e:
        raise click.ClickException(str(e))
    except AnalysisCancelled as e:
        raise click.ClickException(str(e))

    if json_out:
        payload = json.dumps(result.to_dict(), indent=2)
        if output_file:
            Path(output_file).write_text(payload, encoding="utf-8")
        else:
            click.echo(payload)
        return

    _print_summary(result)
    markdown = result.context.digest_markdown
    if output_file:
        Path(output_file).write_text(markdown, encoding="utf-8")
        log_console.print(f"[green]Digest written to {output_file}[/]")
    else:
        click.echo(markdown)


@cli.command()
def version():
    """Show version information."""
    console.print(f"repo-digest v{__version__}")
    console.print("Repository context extraction for LLM summarization")


def _print_summary(result: AnalysisResult) -> None:
    """Print a compact overview of what was extracted (to stderr)."""
    ctx = result.context
    table = Table(title="Repository Analysis", show_header=False, border_style="dim")
    table.add_column("Key", style="bold")
    table.add_column("Value")

    table.add_row("Name", ctx.name)
    if ctx.description:
        table.add_row("Description", ctx.description[:80])
    table.add_row("Default branch", ctx.default_branch or "unknown")
    table.add_row("Commits", str(len(ctx.commits)))
    if ctx.commits:
        table.add_row("Latest", f"{ctx.commits[0].hash[:7]} {(ctx.commits[0].message.splitlines() or [''])[0][:60]}")
    table.add_row("Changed files", str(len(ctx.file_changes)))
    table.add_row("README", "yes" if ctx.readme else "no")
    log_console.print(table)

    dirs = [n for n in ctx.tree if isinstance(n, DirectoryNode)]
    if dirs:
        tree = Tree("[bold]Top-level directories[/]")
        for d in dirs[:15]:
            tree.add(f"{d.name}/")
        log_console.print(tree)

    for warning in result.warnings:
        log_console.print(f"[yellow]Warning:[/] {warning}")


def main() -> None:
    cli(auto_envvar_prefix="REPO_DIGEST")


if __name__ == "__main__":
    main()

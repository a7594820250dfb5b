"""Defines the Command Line Interface (CLI) using Typer."""

import asyncio
from functools import wraps
from pathlib import Path
from typing import Any, Callable, TypeVar

import typer
from dotenv import load_dotenv
from pydantic import ValidationError
from typer import Argument, Option
from typing_extensions import Annotated

from notehub.configuration import context as app_context
from notehub.configuration.exceptions import NoDefaultSet
from notehub.configuration.settings import Settings
from notehub.exceptions import NoteHubError
from notehub.github.exceptions import RateLimited
from notehub.read.resolver import ViewSource
from notehub.schemas.issue import StateFilter
from notehub.schemas.repository import RepositoryId, RepositoryScope
from notehub.synchronize.results import SyncReport
from notehub.utils.logging import configure_logging

load_dotenv()

F = TypeVar("F", bound=Callable[..., Any])

typer_app = typer.Typer(pretty_exceptions_show_locals=False, no_args_is_help=True, help="Interact with GitHub issues as local notes.")
issue_app = typer.Typer(help="Inspect cached GitHub issues", no_args_is_help=True)
repo_app = typer.Typer(help="Manage tracked repositories", no_args_is_help=True)
note_app = typer.Typer(help="Manage local-only notes tied to issues", no_args_is_help=True)


def parse_repository_option(value: str | None) -> RepositoryId | None:
    """Convert an --repo/argument value into a RepositoryId."""
    if value is None:
        return None
    try:
        return RepositoryId.parse(value)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


def describe_error(error: NoteHubError) -> str:
    """One-line message telling whether retrying later may help."""
    message = str(error) or type(error).__name__
    if isinstance(error, RateLimited) and error.retry_after is not None:
        return f"{message} (transient, retry in about {int(error.retry_after)}s)"
    if error.retryable:
        return f"{message} (transient, retry later)"
    return message


def reports_errors(func: F) -> F:
    """Decorator that prints NoteHub errors and exits with status 1."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except NoteHubError as exc:
            typer.echo(f"Error: {describe_error(exc)}", err=True)
            raise typer.Exit(code=1) from exc

    return wrapper  # type: ignore


def get_app(ctx: typer.Context) -> app_context.AppContext:
    """Open the application context on first use and close it with the CLI context."""
    root = ctx.find_root()
    app: app_context.AppContext | None = root.obj.get("app")
    if app is None:
        source = app_context.build_remote_source(root.obj["github_pat_token"], root.obj["github_api_url"])
        app = app_context.AppContext.open(root.obj["data_dir"], source, page_size=root.obj["page_size"])
        root.obj["app"] = app
        root.call_on_close(app.close)
    return app


@typer_app.callback()
def main_callback(
    ctx: typer.Context,
    debug: Annotated[bool, Option("--debug", help="Enable debug logging.")] = False,
    data_dir: Annotated[Path | None, Option(envvar="NOTEHUB_DATA_DIR", help="Directory holding the local cache.")] = None,
    github_api_url: Annotated[str | None, Option(envvar="GITHUB_API_URL", help="GitHub API URL.")] = None,
    github_pat_token: Annotated[str | None, Option(envvar="GITHUB_PAT_TOKEN", help="GitHub Personal Access Token.")] = None,
) -> None:
    """Interact with GitHub issues as local notes."""
    try:
        settings = Settings()
    except ValidationError as exc:
        typer.echo(f"Invalid configuration: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    debug = debug or settings.DEBUG
    configure_logging(debug=debug)
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    ctx.obj["data_dir"] = data_dir or settings.NOTEHUB_DATA_DIR
    ctx.obj["github_api_url"] = github_api_url or settings.GITHUB_API_URL
    ctx.obj["github_pat_token"] = github_pat_token or settings.GITHUB_PAT_TOKEN
    ctx.obj["page_size"] = settings.NOTEHUB_PAGE_SIZE


# --- Sync ---
def echo_sync_report(report: SyncReport) -> None:
    """Print one line per repository of a sync report."""
    for result in report.results:
        if result.error is None:
            typer.echo(f"{result.repository}: synced {result.issues_synced} issues")
        else:
            typer.echo(
                f"{result.repository}: failed after {result.issues_synced} issues: {describe_error(result.error)}",
                err=True,
            )


@typer_app.command(name="sync")
@reports_errors
def sync_cli(
    ctx: typer.Context,
    repo: Annotated[str | None, Option("--repo", help="Sync only this repository (owner/name).")] = None,
    all_repos: Annotated[bool, Option("--all", help="Sync every tracked repository (the default).")] = False,
) -> None:
    """Synchronize GitHub issues into the local cache."""
    if repo is not None and all_repos:
        raise typer.BadParameter("--repo and --all are mutually exclusive")
    app = get_app(ctx)
    repository = parse_repository_option(repo)
    target: RepositoryId | RepositoryScope = repository if repository is not None else RepositoryScope.ALL
    if target == RepositoryScope.ALL and not app.registry.list():
        typer.echo("No repositories are tracked. Run 'notehub repo add owner/name' first.", err=True)
        raise typer.Exit(code=1)
    report = asyncio.run(app.engine.sync(target))
    echo_sync_report(report)
    if not report.ok:
        raise typer.Exit(code=1)


# --- Issues ---
@issue_app.command(name="list")
@reports_errors
def issue_list_cli(
    ctx: typer.Context,
    repo: Annotated[str | None, Option("--repo", help="Repository (owner/name). Defaults to the default repository.")] = None,
    all_repos: Annotated[bool, Option("--all", help="List issues of every tracked repository.")] = False,
    state: Annotated[StateFilter, Option("--state", case_sensitive=False, help="Filter issues by state.")] = StateFilter.OPEN,
) -> None:
    """List issues currently in the cache."""
    if repo is not None and all_repos:
        raise typer.BadParameter("--repo and --all are mutually exclusive")
    app = get_app(ctx)
    repository = parse_repository_option(repo)
    if all_repos:
        target: RepositoryId | RepositoryScope = RepositoryScope.ALL
    else:
        target = repository if repository is not None else RepositoryScope.DEFAULT
    listed = app.resolver.list(target, state)
    if not listed:
        typer.echo("No cached issues. Run 'notehub sync' to fetch them.")
        return
    for entry in listed:
        prefix = f"{entry.repository}" if all_repos else ""
        typer.echo(f"{prefix}#{entry.issue.number:<6} [{entry.issue.state.value:<6}] {entry.issue.title}")


@issue_app.command(name="view")
@reports_errors
def issue_view_cli(
    ctx: typer.Context,
    number: Annotated[int, Argument(min=1, help="Issue number to display.")],
    repo: Annotated[str | None, Option("--repo", help="Repository (owner/name). Defaults to the default repository.")] = None,
) -> None:
    """View a single issue by number."""
    app = get_app(ctx)
    view = asyncio.run(app.resolver.view(parse_repository_option(repo), number))
    issue = view.issue
    typer.echo(f"{view.repository}#{issue.number}: {issue.title}")
    typer.echo(f"State:   {issue.state.value}")
    typer.echo(f"Author:  {issue.author or 'ghost'}")
    typer.echo(f"Created: {issue.created_at.isoformat()}")
    typer.echo(f"Updated: {issue.updated_at.isoformat()}")
    if issue.closed_at is not None:
        typer.echo(f"Closed:  {issue.closed_at.isoformat()}")
    if issue.labels:
        typer.echo(f"Labels:  {', '.join(issue.labels)}")
    typer.echo(f"Comments: {issue.comments}")
    if issue.html_url:
        typer.echo(f"URL:     {issue.html_url}")
    typer.echo("")
    typer.echo(issue.body or "(no description)")
    notes = app.notes.list(view.repository, number)
    if notes:
        typer.echo("")
        typer.echo(f"Notes ({len(notes)}):")
        for note in notes:
            typer.echo(f"  [{note.created_at:%Y-%m-%d %H:%M}] {note.body}")
    if view.source == ViewSource.REMOTE:
        typer.echo("")
        typer.echo("(not cached yet: fetched from GitHub and stored)")


# --- Repositories ---
@repo_app.command(name="add")
@reports_errors
def repo_add_cli(
    ctx: typer.Context,
    repo: Annotated[str, Argument(help="Repository to track (owner/name).")],
    default: Annotated[bool, Option("--default", help="Also make it the default repository.")] = False,
) -> None:
    """Track a repository."""
    app = get_app(ctx)
    repository = app.registry.add(parse_repository_option(repo))  # type: ignore[arg-type]
    if default:
        app.registry.set_default(repository)
    typer.echo(f"Tracking {repository}")


@repo_app.command(name="use")
@reports_errors
def repo_use_cli(
    ctx: typer.Context,
    repo: Annotated[str, Argument(help="Tracked repository to make the default (owner/name).")],
) -> None:
    """Set the default repository."""
    app = get_app(ctx)
    repository = app.registry.set_default(parse_repository_option(repo))  # type: ignore[arg-type]
    typer.echo(f"Default repository is now {repository}")


@repo_app.command(name="list")
@reports_errors
def repo_list_cli(ctx: typer.Context) -> None:
    """List tracked repositories; the default one is marked with '*'."""
    app = get_app(ctx)
    repositories = app.registry.list()
    if not repositories:
        typer.echo("No repositories are tracked. Run 'notehub repo add owner/name'.")
        return
    try:
        default: RepositoryId | None = app.registry.default()
    except NoDefaultSet:
        default = None
    for repository in repositories:
        marker = "*" if repository == default else " "
        cursor = app.store.get_cursor(repository)
        synced = cursor.last_synced_at.isoformat() if cursor else "never"
        typer.echo(f"{marker} {repository}  (last synced: {synced})")


# --- Notes ---
@note_app.command(name="add")
@reports_errors
def note_add_cli(
    ctx: typer.Context,
    number: Annotated[int, Argument(min=1, help="Target issue number.")],
    text: Annotated[str, Argument(help="Text for the note.")],
    repo: Annotated[str | None, Option("--repo", help="Repository (owner/name). Defaults to the default repository.")] = None,
) -> None:
    """Attach a note to an issue."""
    app = get_app(ctx)
    try:
        note = asyncio.run(app.notes.add(parse_repository_option(repo), number, text))
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    typer.echo(f"Added note {note.id} to #{number}")


@note_app.command(name="list")
@reports_errors
def note_list_cli(
    ctx: typer.Context,
    number: Annotated[int, Argument(min=1, help="Target issue number.")],
    repo: Annotated[str | None, Option("--repo", help="Repository (owner/name). Defaults to the default repository.")] = None,
) -> None:
    """List notes for an issue."""
    app = get_app(ctx)
    notes = app.notes.list(parse_repository_option(repo), number)
    if not notes:
        typer.echo(f"No notes for #{number}")
        return
    for note in notes:
        typer.echo(f"{note.id}. [{note.created_at:%Y-%m-%d %H:%M}] {note.body}")


typer_app.add_typer(issue_app, name="issue")
typer_app.add_typer(repo_app, name="repo")
typer_app.add_typer(note_app, name="note")


if __name__ == "__main__":
    typer_app()

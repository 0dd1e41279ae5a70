"""CLI entry point for gho.

Commands:
- account: add, list, use, show and remove GitHub identities
- repo: list and clone repositories as the active account
- pr: list open pull requests
- org: list organizations of the active account
"""

import functools
import json
import sys
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TypeVar

import click
from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt
from rich.table import Table

from gho import __version__
from gho.accounts import AccountStore
from gho.config import Settings, load_settings
from gho.context import detect_repo_context, parse_repo_spec
from gho.errors import CloneFailed, CredentialError, GhoError, RateLimited
from gho.github.auth import CredentialResolver
from gho.github.rest import RestClient
from gho.keychain import KeyringSecretStore, SecretStore, mask_token
from gho.logging import setup_logging
from gho.models import Account, AccountKind, CloneProtocol, MergeableState, TokenRef
from gho.pulls import PullRequestOperations
from gho.repos import CloneStatus, RepoOperations, SubprocessGitCloner
from gho.state import RunStateStore
from gho.storage import ConfigPaths, JSONDocumentStore

console = Console()
err_console = Console(stderr=True)

F = TypeVar("F", bound=Callable[..., Any])

MERGE_STATE_STYLES = {
    MergeableState.CLEAN: "green",
    MergeableState.DIRTY: "red",
    MergeableState.BLOCKED: "yellow",
    MergeableState.UNKNOWN: "dim",
}


@dataclass
class AppContext:
    """Stores and services shared by all commands of one invocation."""

    settings: Settings
    accounts: AccountStore
    state: RunStateStore
    secrets: SecretStore
    resolver: CredentialResolver
    account_id: str | None = None

    @classmethod
    def create(cls, account_id: str | None = None) -> "AppContext":
        """Wire up stores from settings on disk and the OS keychain."""
        settings = load_settings()
        paths = ConfigPaths.from_settings(settings)
        secrets = KeyringSecretStore()
        return cls(
            settings=settings,
            accounts=AccountStore(
                JSONDocumentStore(paths.accounts_path), secrets, settings.service_name
            ),
            state=RunStateStore(JSONDocumentStore(paths.state_path)),
            secrets=secrets,
            resolver=CredentialResolver.default(secrets, service=settings.service_name),
            account_id=account_id,
        )

    def client_factory(self, token: str) -> RestClient:
        return RestClient.from_token(token, self.settings)

    def current_account(self) -> Account:
        """The account named with --account, else the active one."""
        return self.accounts.resolve(self.account_id)

    def repo_operations(self) -> RepoOperations:
        return RepoOperations(
            self.resolver,
            client_factory=self.client_factory,
            cloner=SubprocessGitCloner(),
            state=self.state,
        )

    def pr_operations(self) -> PullRequestOperations:
        return PullRequestOperations(
            self.resolver,
            client_factory=self.client_factory,
            state=self.state,
        )


def _app(ctx: click.Context) -> AppContext:
    """Build the AppContext on first use and cache it on the click context."""
    root = ctx.find_root()
    if root.obj.get("app") is None:
        root.obj["app"] = AppContext.create(account_id=root.obj.get("account_id"))
    app: AppContext = root.obj["app"]
    return app


def handle_errors(func: F) -> F:
    """Report gho errors on stderr and exit with the error's exit code."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except GhoError as e:
            err_console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
            if isinstance(e, RateLimited) and e.retry_after is not None:
                err_console.print(f"[yellow]Try again in {e.retry_after} seconds[/yellow]")
            raise click.exceptions.Exit(e.exit_code) from e
        except KeyboardInterrupt:
            err_console.print("\n[yellow]Interrupted[/yellow]")
            raise click.Abort() from None

    return wrapper  # type: ignore[return-value]


@click.group()
@click.version_option(version=__version__, prog_name="gho")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging")
@click.option("--log-json", is_flag=True, default=False, help="Emit log lines as JSON")
@click.option(
    "--account",
    "-a",
    "account_id",
    default=None,
    help="Act as this account instead of the active one",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, log_json: bool, account_id: str | None) -> None:
    """GitHub operator CLI for multi-account workflows.

    \b
    Quick Start:
        1. Add an account:   gho account add work -u octocat -t ghp_...
        2. Switch accounts:  gho account use personal
        3. Browse:           gho repo list, gho pr list owner/repo
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["account_id"] = account_id
    setup_logging(verbose=verbose, json_format=log_json)


# ============================================================================
# ACCOUNT COMMANDS
# ============================================================================


@main.group()
def account() -> None:
    """Manage GitHub accounts."""


@account.command("add")
@click.argument("account_id")
@click.option("--username", "-u", required=True, help="GitHub username")
@click.option(
    "--token",
    "-t",
    default=None,
    help="Personal access token, stored in the OS keychain. "
    "Omit to rely on GH_TOKEN/GITHUB_TOKEN",
)
@click.option(
    "--kind",
    "-k",
    type=click.Choice([k.value for k in AccountKind]),
    default=AccountKind.PERSONAL.value,
    show_default=True,
    help="Account kind",
)
@click.option(
    "--protocol",
    "-p",
    type=click.Choice([p.value for p in CloneProtocol]),
    default=CloneProtocol.SSH.value,
    show_default=True,
    help="Clone protocol",
)
@click.option("--default-org", "-o", default=None, help="Default organization for repo list")
@click.option("--clone-dir", "-d", default=None, help="Base directory for clones")
@click.pass_context
@handle_errors
def account_add(
    ctx: click.Context,
    account_id: str,
    username: str,
    token: str | None,
    kind: str,
    protocol: str,
    default_org: str | None,
    clone_dir: str | None,
) -> None:
    """Add a new account."""
    app = _app(ctx)
    new_account = Account(
        id=account_id,
        username=username,
        kind=AccountKind(kind),
        token_ref=TokenRef.KEYCHAIN if token else TokenRef.ENV,
        clone_protocol=CloneProtocol(protocol),
        default_org=default_org,
        clone_dir=clone_dir,
    )
    collection = app.accounts.add(new_account, token=token)

    console.print(f"[green]✓[/green] Added account '{escape(account_id)}'")
    if collection.active_id == account_id:
        console.print(f"  '{escape(account_id)}' is now the active account")
    if token is None:
        console.print("[yellow]No token stored; GH_TOKEN or GITHUB_TOKEN will be used[/yellow]")


@account.command("list")
@click.pass_context
@handle_errors
def account_list(ctx: click.Context) -> None:
    """List all accounts."""
    collection = _app(ctx).accounts.list()

    if not collection.accounts:
        console.print("No accounts configured.")
        return

    table = Table(title="Accounts")
    table.add_column("", width=1)
    table.add_column("ID", style="bold")
    table.add_column("Username")
    table.add_column("Kind")
    table.add_column("Protocol")
    table.add_column("Default org")

    for acc in collection.accounts:
        marker = "*" if acc.id == collection.active_id else ""
        table.add_row(
            marker,
            acc.id,
            acc.username,
            acc.kind.value,
            acc.clone_protocol.value,
            acc.default_org or "",
        )

    console.print(table)


def _pick_account(app: AppContext) -> str:
    """Prompt for an account id on an interactive terminal."""
    if not sys.stdin.isatty():
        msg = "No account id given and stdin is not a terminal"
        raise click.UsageError(msg)

    collection = app.accounts.list()
    if not collection.accounts:
        raise GhoError("No accounts configured. Run 'gho account add' first")

    for acc in collection.accounts:
        marker = " (active)" if acc.id == collection.active_id else ""
        console.print(f"  {escape(acc.id)} [dim]({escape(acc.username)})[/dim]{marker}")

    return Prompt.ask(
        "Select account",
        choices=[acc.id for acc in collection.accounts],
        default=collection.active_id,
        console=console,
    )


@account.command("use")
@click.argument("account_id", required=False)
@click.pass_context
@handle_errors
def account_use(ctx: click.Context, account_id: str | None) -> None:
    """Switch the active account (prompts when ACCOUNT_ID is omitted)."""
    app = _app(ctx)
    if account_id is None:
        account_id = _pick_account(app)

    app.accounts.use(account_id)
    console.print(f"[green]✓[/green] Switched to account '{escape(account_id)}'")


@account.command("show")
@click.pass_context
@handle_errors
def account_show(ctx: click.Context) -> None:
    """Show the active account."""
    app = _app(ctx)
    acc = app.accounts.show_active()

    try:
        token_display = mask_token(app.resolver.resolve_token(acc))
    except CredentialError:
        token_display = "(not found)"

    console.print("[bold]Active account[/bold]")
    console.print(f"  ID:       {escape(acc.id)}")
    console.print(f"  Username: {escape(acc.username)}")
    console.print(f"  Kind:     {acc.kind.value}")
    console.print(f"  Protocol: {acc.clone_protocol.value}")
    console.print(f"  Token:    {escape(token_display)}")
    if acc.default_org:
        console.print(f"  Org:      {escape(acc.default_org)}")
    if acc.clone_dir:
        console.print(f"  Clone:    {escape(acc.clone_dir)}")


@account.command("remove")
@click.argument("account_id")
@click.pass_context
@handle_errors
def account_remove(ctx: click.Context, account_id: str) -> None:
    """Remove an account and its stored token."""
    collection_before = _app(ctx).accounts.list()
    _app(ctx).accounts.remove(account_id)

    console.print(f"[green]✓[/green] Removed account '{escape(account_id)}'")
    if collection_before.active_id == account_id:
        console.print("[yellow]No active account now; run 'gho account use <id>'[/yellow]")


# ============================================================================
# REPO COMMANDS
# ============================================================================


@main.group()
def repo() -> None:
    """List and clone repositories."""


@repo.command("list")
@click.option("--org", "-o", default=None, help="Organization to list repositories from")
@click.option("--limit", "-l", type=click.IntRange(min=1), default=None, help="Maximum repos")
@click.option("--json", "as_json", is_flag=True, default=False, help="Output JSON lines")
@click.pass_context
@handle_errors
def repo_list(ctx: click.Context, org: str | None, limit: int | None, as_json: bool) -> None:
    """List repositories of the account user or an organization."""
    app = _app(ctx)
    repos = app.repo_operations().list(app.current_account(), org=org, limit=limit)

    if as_json:
        for r in repos:
            click.echo(r.model_dump_json())
        return

    if not repos:
        console.print("No repositories found.")
        return

    for r in repos:
        flags = []
        if r.is_private:
            flags.append("private")
        if r.is_fork:
            flags.append("fork")
        suffix = f" [dim]({', '.join(flags)})[/dim]" if flags else ""
        console.print(f"{escape(r.full_name)} {escape(r.html_url or '')}{suffix}")


@repo.command("clone")
@click.argument("repo_spec", required=False)
@click.option("--org", "-o", default=None, help="Clone every repository of this organization")
@click.option(
    "--dest",
    "-d",
    type=click.Path(path_type=Path),
    default=None,
    help="Destination (directory for the repo, or base directory with --org)",
)
@click.option("--limit", "-l", type=click.IntRange(min=1), default=None, help="Maximum repos")
@click.pass_context
@handle_errors
def repo_clone(
    ctx: click.Context,
    repo_spec: str | None,
    org: str | None,
    dest: Path | None,
    limit: int | None,
) -> None:
    """Clone OWNER/REPO, or every repository of --org."""
    app = _app(ctx)
    acc = app.current_account()
    operations = app.repo_operations()

    if org:
        report = operations.clone_org(acc, org, base_dir=dest, limit=limit)
        for result in report.results:
            if result.status is CloneStatus.CLONED:
                console.print(f"[green]✓[/green] {escape(result.repo)}")
            elif result.status is CloneStatus.SKIPPED:
                console.print(f"[dim]-[/dim] {escape(result.repo)} (already exists)")
            else:
                console.print(f"[red]✗[/red] {escape(result.repo)}: {escape(result.error or '')}")

        console.print(
            f"\n{len(report.succeeded)} of {len(report)} repositories ready, "
            f"{len(report.failed)} failed"
        )
        if report.failed:
            raise click.exceptions.Exit(CloneFailed.exit_code)
        return

    if repo_spec is None:
        msg = "Provide OWNER/REPO or --org"
        raise click.UsageError(msg)

    result = operations.clone(acc, repo_spec, destination=dest)
    console.print(f"[green]✓[/green] Cloned {escape(result.repo)} into {result.destination}")


# ============================================================================
# PR COMMANDS
# ============================================================================


@main.group()
def pr() -> None:
    """Inspect pull requests."""


@pr.command("list")
@click.argument("repo_spec", required=False)
@click.option("--limit", "-l", type=click.IntRange(min=1), default=None, help="Maximum PRs")
@click.option("--json", "as_json", is_flag=True, default=False, help="Output JSON lines")
@click.pass_context
@handle_errors
def pr_list(ctx: click.Context, repo_spec: str | None, limit: int | None, as_json: bool) -> None:
    """List open pull requests of OWNER/REPO (detected from git if omitted)."""
    app = _app(ctx)

    context = parse_repo_spec(repo_spec) if repo_spec else detect_repo_context()
    owner, name = context if context else (None, None)

    prs = app.pr_operations().list_prs(app.current_account(), owner, name, limit=limit)

    if as_json:
        for p in prs:
            click.echo(p.model_dump_json())
        return

    if not prs:
        console.print(f"No open pull requests in {owner}/{name}.")
        return

    table = Table(title=f"Open pull requests: {owner}/{name}")
    table.add_column("#", justify="right")
    table.add_column("Title")
    table.add_column("Author")
    table.add_column("Branch")
    table.add_column("Merge")

    for p in prs:
        style = MERGE_STATE_STYLES[p.mergeable_state]
        table.add_row(
            str(p.number),
            escape(p.title),
            escape(p.author),
            escape(f"{p.head_ref} → {p.base_ref}"),
            f"[{style}]{p.mergeable_state.value}[/{style}]",
        )

    console.print(table)


# ============================================================================
# ORG COMMANDS
# ============================================================================


@main.group()
def org() -> None:
    """Inspect organizations."""


@org.command("list")
@click.option("--json", "as_json", is_flag=True, default=False, help="Output a JSON array")
@click.pass_context
@handle_errors
def org_list(ctx: click.Context, as_json: bool) -> None:
    """List organizations the account belongs to."""
    app = _app(ctx)
    token = app.resolver.resolve_token(app.current_account())
    with app.client_factory(token) as client:
        orgs = client.list_orgs()

    if as_json:
        click.echo(json.dumps(orgs))
        return

    if not orgs:
        console.print("No organizations.")
        return

    last_org = app.state.load().last_org
    for name in orgs:
        marker = " [dim](last used)[/dim]" if name == last_org else ""
        console.print(f"{escape(name)}{marker}")


if __name__ == "__main__":
    main()

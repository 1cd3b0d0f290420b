"""Buddy OS command-line interface."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from . import __version__
from .bundles import BUNDLES, DEFAULT_BUNDLE, ROLES, resolve_bundle, resolve_role
from .config import BUDDY_DIR, Settings, load_settings
from .exceptions import BuddyOSError
from .gitignore import PatchResult
from .installer import InstallReport, Installer
from .integrations import all_integrations, describe
from .mcp_config import MergeReport, configured_servers, merge_and_persist
from .models import Bundle, InstallStatus, IntegrationDescriptor, Priority

app = typer.Typer(
    name="buddy-os",
    help="Buddy OS: Role-Aware Autonomous Engineering OS",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)
console = Console()

RULE = "━" * 70


@dataclass(frozen=True)
class InitFlags:
    """Answers the init command can take from flags instead of prompts."""

    bundle: str | None = None
    role: str | None = None
    yes: bool = False
    skip_mcp: bool = False

    def override(self, **values: Any) -> InitFlags:
        """Return a copy where explicitly given values win."""
        given = {k: v for k, v in values.items() if v not in (None, False)}
        return replace(self, **given)


@dataclass
class CliContext:
    """Global options shared by every command."""

    project: Path | None = None
    mcp_config: Path | None = None
    flags: InitFlags = field(default_factory=InitFlags)

    def settings(self) -> Settings:
        return load_settings(self.project, mcp_config_path=self.mcp_config)


def _configure_logging(verbose: bool) -> None:
    """Route library logging through rich on stderr."""
    package_logger = logging.getLogger("buddy_os")
    if not any(isinstance(h, RichHandler) for h in package_logger.handlers):
        package_logger.addHandler(
            RichHandler(
                console=Console(stderr=True),
                show_time=False,
                show_path=False,
            ),
        )
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _banner(title: str, style: str = "cyan") -> None:
    console.print(f"\n[bold {style}]{RULE}\n{title}\n{RULE}[/bold {style}]\n")


def _fail(error: BuddyOSError) -> typer.Exit:
    console.print(f"[red]Error:[/red] {escape(str(error))}")
    return typer.Exit(1)


def version_callback(value: bool) -> None:
    """Callback for --version flag."""
    if value:
        console.print(f"Buddy OS v{__version__}")
        raise typer.Exit


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    project: Path | None = typer.Option(
        None,
        "--project",
        "-p",
        help="Project directory (defaults to the current directory)",
        file_okay=False,
    ),
    mcp_config: Path | None = typer.Option(
        None,
        "--mcp-config",
        help="Shared MCP config (defaults to ~/.cursor/mcp.json)",
        dir_okay=False,
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Show debug logging"),
    bundle: str | None = typer.Option(
        None,
        "--bundle",
        help="starter | advanced | techlead | enterprise",
    ),
    role: str | None = typer.Option(
        None,
        "--role",
        help="sde1 | sde2 | sde3 | senior | staff | manager | product",
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompts"),
    skip_mcp: bool = typer.Option(False, "--skip-mcp", help="Skip MCP configuration"),
) -> None:
    """Buddy OS: Role-Aware Autonomous Engineering OS.

    Running without a command installs or upgrades the current project.
    """
    _configure_logging(verbose)
    ctx.obj = CliContext(
        project=project,
        mcp_config=mcp_config,
        flags=InitFlags(bundle=bundle, role=role, yes=yes, skip_mcp=skip_mcp),
    )
    if ctx.invoked_subcommand is None:
        _run_init(ctx.obj, ctx.obj.flags)


@app.command()
def init(
    ctx: typer.Context,
    bundle: str | None = typer.Option(
        None,
        "--bundle",
        help="starter | advanced | techlead | enterprise",
    ),
    role: str | None = typer.Option(
        None,
        "--role",
        help="sde1 | sde2 | sde3 | senior | staff | manager | product",
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompts"),
    skip_mcp: bool = typer.Option(False, "--skip-mcp", help="Skip MCP configuration"),
) -> None:
    """Initialize in current directory (default)."""
    cli: CliContext = ctx.obj
    flags = cli.flags.override(bundle=bundle, role=role, yes=yes, skip_mcp=skip_mcp)
    _run_init(cli, flags)


def _choose_bundle(token: str | int | None, interactive: bool) -> Bundle:
    if token is not None:
        chosen = resolve_bundle(token)
        console.print(f"[blue]ℹ[/blue] Bundle: {chosen.name}")
        return chosen
    if not interactive:
        return resolve_bundle(DEFAULT_BUNDLE)

    console.print("\n[bold cyan]Select your bundle:[/bold cyan]\n")
    for index, candidate in enumerate(BUNDLES.values(), start=1):
        console.print(f"  {index}) [bold]{candidate.name}[/bold]")
        console.print(f"      [dim]{candidate.description}[/dim]")
        console.print(f"      [dim]Features: {', '.join(candidate.features)}[/dim]\n")
    default_index = list(BUNDLES).index(DEFAULT_BUNDLE) + 1
    return resolve_bundle(typer.prompt(f"Bundle (1-{len(BUNDLES)})", default=str(default_index)))


def _choose_role(token: str | int | None, interactive: bool) -> str:
    if token is not None:
        chosen = resolve_role(token)
        console.print(f"[blue]ℹ[/blue] Role: {chosen}")
        return chosen
    if not interactive:
        return resolve_role(None)

    console.print("\n[bold cyan]Select your role:[/bold cyan]\n")
    for index, label in enumerate(ROLES.values(), start=1):
        console.print(f"  {index}) {label}")
    console.print()
    default_index = list(ROLES).index(resolve_role(None)) + 1
    return resolve_role(typer.prompt(f"Role (1-{len(ROLES)})", default=str(default_index)))


def _show_guide(descriptor: IntegrationDescriptor) -> None:
    guide = descriptor.guide
    console.print(f"\n   [bold]{guide.title}[/bold]")
    for step_number, step in enumerate(guide.steps, start=1):
        console.print(f"   [cyan]{step_number}.[/cyan] {escape(step)}")
    if guide.url:
        console.print(f"   [dim]Link: [underline]{guide.url}[/underline][/dim]")
    if guide.note:
        console.print(f"   [yellow]💡 {guide.note}[/yellow]")
    console.print()


def _collect_integrations(existing: dict[str, Any]) -> dict[str, dict[str, str]]:
    """Walk the integration catalog and prompt for credentials."""
    console.print("MCPs connect Buddy to external services for richer context.")
    console.print("[dim]Tokens are stored in the shared MCP config (local only)[/dim]\n")

    entries: dict[str, dict[str, str]] = {}
    for descriptor in all_integrations():
        if descriptor.priority is Priority.RECOMMENDED:
            label = "[yellow]⭐ Recommended[/yellow]"
        else:
            label = "[dim]○ Optional[/dim]"
        console.print(f"{descriptor.icon} [bold]{descriptor.name}[/bold] {label}")
        console.print(f"   [dim]{descriptor.description}[/dim]")

        if descriptor.id in existing:
            console.print("   [green]✓ Already configured[/green]\n")
            continue

        if not typer.confirm(f"   Configure {descriptor.name}?", default=False):
            console.print()
            continue

        _show_guide(descriptor)
        credentials: dict[str, str] = {}
        for field_name in descriptor.env_vars:
            credentials[field_name] = typer.prompt(
                f"   {field_name}",
                default="",
                show_default=False,
                hide_input="TOKEN" in field_name,
            )
        entries[descriptor.id] = credentials
        console.print()

    return entries


def _print_merge(report: MergeReport) -> None:
    for integration_id in report.configured:
        descriptor = describe(integration_id)
        name = descriptor.name if descriptor else integration_id
        suffix = "" if descriptor is None or descriptor.needs_credentials else " (OAuth-based)"
        console.print(f"[green]✅[/green] {name} configured{suffix}")
    for integration_id, missing in report.skipped.items():
        descriptor = describe(integration_id)
        name = descriptor.name if descriptor else integration_id
        console.print(
            f"[yellow]⚠️  Skipped {name}[/yellow] (missing credentials: {', '.join(missing)})",
        )
    for integration_id in report.unknown:
        console.print(f"[yellow]⚠️  Unknown integration {escape(integration_id)}[/yellow]")
    if report.written:
        console.print(f"[green]✅[/green] MCP configuration saved to {report.path}")
        console.print("[blue]ℹ[/blue] Restart Cursor to activate new MCPs")


def _list_servers(servers: dict[str, Any] | list[str]) -> None:
    for key in servers:
        descriptor = describe(key)
        icon = descriptor.icon if descriptor else "🔌"
        name = descriptor.name if descriptor else key
        console.print(f"   {icon} {escape(name)}")


def _print_install_summary(report: InstallReport) -> None:
    state = report.state
    bundle = BUNDLES[state.role_system.bundle]
    mcp = state.mcp_status

    console.print(f"[green]✅[/green] {report.rules_copied} rules installed")
    console.print(f"[dim]   Location: {BUDDY_DIR}/rules/[/dim]")
    console.print("[green]✅[/green] Configuration initialized")
    console.print("[green]✅[/green] Audit logging enabled")

    if report.gitignore is PatchResult.UPDATED:
        console.print("[green]✅[/green] .gitignore updated (Buddy files excluded)")
    elif report.gitignore is PatchResult.CREATED:
        console.print("[green]✅[/green] .gitignore created (Buddy files excluded)")
    else:
        console.print("[blue]ℹ[/blue] .gitignore already configured")

    action = "UPGRADED" if report.upgraded else "INSTALLED"
    _banner(f"✅ BUDDY OS v{__version__} {action} SUCCESSFULLY", style="green")

    servers = f" ({', '.join(mcp.servers)})" if mcp.servers else ""
    console.print(f"[cyan]Bundle:[/cyan]    {bundle.name}")
    console.print(f"[cyan]Role:[/cyan]      {state.role_system.current_role}")
    console.print(f"[cyan]Autonomy:[/cyan]  {bundle.autonomy}")
    console.print(f"[cyan]MCPs:[/cyan]      {mcp.configured} configured{servers}")
    console.print(f"[cyan]Location:[/cyan]  {BUDDY_DIR}/ [dim](gitignored)[/dim]")

    console.print("\n[bold]Next Steps:[/bold]")
    if mcp.configured == 0:
        console.print("  1. Run [cyan]buddy-os mcp-setup[/cyan] to connect services")
    else:
        console.print("  1. Restart Cursor to activate MCPs")
    console.print("  2. Type [cyan]/buddy[/cyan] in Cursor to see your daily snapshot")
    console.print("  3. Explore [cyan]/buddy ideas[/cyan] for improvement suggestions\n")


def _run_init(cli: CliContext, flags: InitFlags) -> None:
    """Resolve answers, then hand them to the installer."""
    _banner(f"🤖 BUDDY OS v{__version__} - Role-Aware Autonomous Engineering OS")
    try:
        settings = cli.settings()
        installer = Installer(settings)

        if installer.is_installed() and not flags.yes:
            if not typer.confirm("Buddy OS already installed. Upgrade?", default=False):
                console.print("[blue]ℹ[/blue] Installation cancelled")
                return

        interactive = not flags.yes
        bundle = _choose_bundle(
            flags.bundle if flags.bundle is not None else settings.default_bundle,
            interactive,
        )
        role = _choose_role(
            flags.role if flags.role is not None else settings.default_role,
            interactive,
        )

        skip_mcp = flags.skip_mcp or settings.skip_mcp
        integrations: dict[str, dict[str, str]] | None = None
        if not skip_mcp and interactive:
            existing = configured_servers(settings.mcp_config_path)
            if existing:
                console.print(
                    f"\n[green]✓ Found {len(existing)} existing MCP(s) "
                    f"in {settings.mcp_config_path}[/green]",
                )
                _list_servers(existing)
                if typer.confirm("\nConfigure additional MCPs?", default=False):
                    _banner("📡 MCP CONFIGURATION WIZARD")
                    integrations = _collect_integrations(existing)
            elif typer.confirm("\nConfigure MCP integrations now?", default=True):
                _banner("📡 MCP CONFIGURATION WIZARD")
                integrations = _collect_integrations({})

        console.print("\n[bold cyan]Installing Buddy OS...[/bold cyan]\n")
        report = installer.install(
            bundle,
            role,
            integrations=integrations,
            track_mcp=not skip_mcp,
        )
    except BuddyOSError as e:
        raise _fail(e) from e

    if report.merge is not None:
        _print_merge(report.merge)
    console.print("[green]✅[/green] Directory structure created")
    console.print(f"[dim]   Location: {BUDDY_DIR}/[/dim]")
    _print_install_summary(report)


@app.command()
def cleanup(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
) -> None:
    """Remove Buddy OS installation."""
    cli: CliContext = ctx.obj
    _banner("🧹 BUDDY OS CLEANUP")
    try:
        installer = Installer(cli.settings())
        if not installer.install_dir.exists():
            console.print("[yellow]⚠️  Buddy OS not installed in this directory[/yellow]")
            return

        if not (yes or cli.flags.yes):
            if not typer.confirm("This will remove all Buddy OS files. Continue?", default=False):
                console.print("[blue]ℹ[/blue] Cleanup cancelled")
                return

        installer.cleanup()
    except BuddyOSError as e:
        raise _fail(e) from e

    console.print(f"[green]✅[/green] Removed {BUDDY_DIR}/")
    console.print("[green]✅[/green] Updated .gitignore")
    console.print("\n[green]✅ Buddy OS has been removed.[/green]")
    console.print("\nTo reinstall: [cyan]buddy-os[/cyan]\n")


app.command("uninstall", hidden=True)(cleanup)
app.command("remove", hidden=True)(cleanup)


@app.command()
def status(ctx: typer.Context) -> None:
    """Show current configuration."""
    cli: CliContext = ctx.obj
    try:
        report = Installer(cli.settings()).status()
    except BuddyOSError as e:
        raise _fail(e) from e

    if report is None:
        console.print("[yellow]⚠️  Buddy OS not installed. Run: buddy-os[/yellow]")
        return

    state = report.state
    table = Table(title="Buddy OS Status")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Version", state.version)
    table.add_row("Bundle", BUNDLES[state.role_system.bundle].name)
    table.add_row("Role", state.role_system.current_role)
    table.add_row("Autonomy", state.role_system.autonomy_level)
    table.add_row("Rules", f"{report.rules_installed} installed")
    table.add_row("Sessions", str(state.session_count))
    table.add_row("Installed", state.installed_at.date().isoformat())
    console.print(table)

    if report.status is InstallStatus.NEEDS_UPGRADE:
        console.print(
            f"[yellow]Installed by v{state.version}; run buddy-os to upgrade to v{__version__}[/yellow]",
        )

    console.print(f"\n[bold]MCPs Configured ({len(report.mcp_servers)}):[/bold]")
    if not report.mcp_servers:
        console.print("   [dim]None - run: buddy-os mcp-setup[/dim]")
    else:
        _list_servers(report.mcp_servers)


@app.command("mcp-setup")
def mcp_setup(ctx: typer.Context) -> None:
    """Configure MCP integrations (interactive wizard)."""
    cli: CliContext = ctx.obj
    _banner("📡 MCP CONFIGURATION WIZARD")
    try:
        settings = cli.settings()
        existing = configured_servers(settings.mcp_config_path)
        if existing:
            console.print("[green]✓ Found existing MCP configuration:[/green]")
            _list_servers(existing)
            console.print()
            if typer.confirm("Use existing configuration?", default=True):
                console.print("[green]✅[/green] Using existing MCP configuration")
                return

        entries = _collect_integrations(existing)
        report = merge_and_persist(settings.mcp_config_path, entries)
    except BuddyOSError as e:
        raise _fail(e) from e

    _print_merge(report)
    if not report.configured:
        console.print("[dim]No new MCPs configured[/dim]")


app.command("mcp", hidden=True)(mcp_setup)


@app.command()
def version() -> None:
    """Show version."""
    console.print(f"Buddy OS v{__version__}")


@app.command("help")
def help_command(ctx: typer.Context) -> None:
    """Show this help."""
    parent = ctx.parent if ctx.parent is not None else ctx
    typer.echo(parent.get_help())


def main() -> None:
    """Entry point for the CLI."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(130)


if __name__ == "__main__":
    main()

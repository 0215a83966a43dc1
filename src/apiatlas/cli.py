"""Click CLI for API Atlas."""

import asyncio
from pathlib import Path
from typing import Optional

import click
from textual.theme import BUILTIN_THEMES
from trogon import tui

from apiatlas import __version__
from apiatlas.cascade import SelectionCascade
from apiatlas.client import CatalogClient
from apiatlas.config import LOG_LEVELS, SETTABLE_KEYS, AtlasConfig
from apiatlas.export import EXPORT_FORMATS, default_filename, export_document
from apiatlas.log import configure_logging


def _client_from_context(ctx: click.Context) -> CatalogClient:
    """Build a catalog client from the group options and saved config."""
    obj = ctx.find_root().obj
    config: AtlasConfig = obj["config"]
    return CatalogClient(
        token=obj["token"] or config.token,
        base_url=obj["base_url"] or config.base_url,
    )


def _run_step(ctx: click.Context, step) -> SelectionCascade:
    """Run one cascade operation against a fresh cascade.

    Exits with status 1 and the cascade's error message if the fetch fails.
    """

    async def runner() -> SelectionCascade:
        async with _client_from_context(ctx) as client:
            cascade = SelectionCascade(client)
            await step(cascade)
            return cascade

    cascade = asyncio.run(runner())
    if cascade.error:
        click.echo(f"Error: {cascade.error}", err=True)
        raise SystemExit(1)
    return cascade


@tui()
@click.group()
@click.version_option(version=__version__, prog_name="apiatlas")
@click.option("--token", "-t", envvar="SWAGGERHUB_API_KEY", help="Catalog API key (bearer token)")
@click.option("--base-url", help="Catalog service URL")
@click.option("--log-level", type=click.Choice(LOG_LEVELS, case_sensitive=False), help="Log level")
@click.pass_context
def cli(
    ctx: click.Context,
    token: Optional[str],
    base_url: Optional[str],
    log_level: Optional[str],
) -> None:
    """API Atlas - drill-down explorer for API catalogs.

    Browse organizations, their projects, the APIs in each project, the
    versions of an API and finally its specification document.

    Quick start:
        apiatlas dashboard                 Launch interactive TUI dashboard
        apiatlas tui                       Launch command explorer (Trogon)
        apiatlas orgs                      List organizations
        apiatlas spec ORG API VERSION      Print a specification document
    """
    config = AtlasConfig.load()
    configure_logging(log_level or config.log_level)
    ctx.obj = {"config": config, "token": token, "base_url": base_url, "log_level": log_level}


@cli.command()
@click.pass_context
def dashboard(ctx: click.Context) -> None:
    """Launch the interactive TUI dashboard.

    Organizations load on start. Select a row to drill down one level:
    organization, project, API, version, specification.

    Keyboard shortcuts:
        q - Quit
        r - Refresh organizations
        e - Export shown specification
    """
    from apiatlas.tui import AtlasApp

    config: AtlasConfig = ctx.obj["config"]
    configure_logging(ctx.obj.get("log_level") or config.log_level, config.log_file)
    app = AtlasApp(client=_client_from_context(ctx), config=config)
    app.run()


# =============================================================================
# Catalog Commands - one cascade level each
# =============================================================================


@cli.command("orgs")
@click.option("--verbose", "-v", is_flag=True, help="Show detailed information")
@click.pass_context
def orgs_list(ctx: click.Context, verbose: bool) -> None:
    """List organizations, sorted by name."""
    cascade = _run_step(ctx, lambda c: c.load_organizations())

    if not cascade.organizations:
        click.echo("No organizations found.")
        return

    click.echo("\n🏢 Organizations:")
    click.echo("=" * 50)
    for org in cascade.organizations:
        click.echo(f"\n  {org.name}")
        if org.description:
            desc = org.description[:60] + "..." if len(org.description) > 60 else org.description
            click.echo(f"    {desc}")
        if verbose:
            click.echo(f"    ID: {org.id}")
            if org.email:
                click.echo(f"    Email: {org.email}")
            if org.member_count is not None:
                click.echo(f"    Members: {org.member_count}")
    click.echo()


@cli.command("projects")
@click.argument("org")
@click.pass_context
def projects_list(ctx: click.Context, org: str) -> None:
    """List the projects of an organization.

    ORG: Organization name
    """
    cascade = _run_step(ctx, lambda c: c.select_organization(org))

    if not cascade.projects:
        click.echo(f"No projects in {org}.")
        return

    click.echo(f"\n📁 Projects in {org}:")
    click.echo("=" * 50)
    for project in cascade.projects:
        click.echo(f"  {project.name}")
        if project.description:
            click.echo(f"    {project.description}")


@cli.command("apis")
@click.argument("org")
@click.argument("project")
@click.pass_context
def apis_list(ctx: click.Context, org: str, project: str) -> None:
    """List the APIs contained in a project.

    ORG: Organization name
    PROJECT: Project name
    """
    cascade = _run_step(ctx, lambda c: c.select_project(org, project))

    if not cascade.apis:
        click.echo(f"No APIs in {org}/{project}.")
        return

    click.echo(f"\n🔌 APIs in {org}/{project}:")
    click.echo("=" * 50)
    for api in cascade.apis:
        click.echo(f"  {api}")


@cli.command("versions")
@click.argument("org")
@click.argument("api")
@click.pass_context
def versions_list(ctx: click.Context, org: str, api: str) -> None:
    """List the versions of an API.

    ORG: Organization name
    API: API name
    """
    cascade = _run_step(ctx, lambda c: c.select_api(org, api))

    if not cascade.versions:
        click.echo(f"No versions of {org}/{api}.")
        return

    click.echo(f"\n🏷  Versions of {org}/{api}:")
    click.echo("=" * 50)
    for version in cascade.versions:
        if version is None:
            click.echo("  (unversioned)")
            continue
        line = f"  {version.value}"
        if version.url:
            line += f"  {version.url}"
        click.echo(line)


@cli.command("spec")
@click.argument("org")
@click.argument("api")
@click.argument("version")
@click.option(
    "--output", "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the document to a file instead of stdout",
)
@click.option(
    "--format", "-f", "export_format",
    type=click.Choice(EXPORT_FORMATS),
    help="Output format (default: from config)",
)
@click.pass_context
def spec_show(
    ctx: click.Context,
    org: str,
    api: str,
    version: str,
    output: Optional[Path],
    export_format: Optional[str],
) -> None:
    """Print or save the specification document of an API version.

    ORG: Organization name
    API: API name
    VERSION: Version label
    """
    config: AtlasConfig = ctx.obj["config"]
    export_format = export_format or config.export_format
    cascade = _run_step(ctx, lambda c: c.select_version(org, api, version))

    try:
        content = export_document(cascade.document or "", output, export_format)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    if output:
        click.echo(f"✅ Wrote {output}")
    else:
        click.echo(content, nl=not content.endswith("\n"))


@cli.command("save")
@click.argument("org")
@click.argument("api")
@click.argument("version")
@click.option(
    "--dir", "-d", "directory",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    help="Directory to write into",
)
@click.pass_context
def spec_save(ctx: click.Context, org: str, api: str, version: str, directory: Path) -> None:
    """Save a specification document as API-VERSION.<format>.

    ORG: Organization name
    API: API name
    VERSION: Version label
    """
    config: AtlasConfig = ctx.obj["config"]
    output = directory / default_filename(api, version, config.export_format)
    ctx.invoke(spec_show, org=org, api=api, version=version, output=output, export_format=None)


# =============================================================================
# Config Commands
# =============================================================================


@cli.group()
def config() -> None:
    """Manage persistent settings (~/.apiatlas/config.json)."""
    pass


@config.command("show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Show current settings."""
    cfg: AtlasConfig = ctx.find_root().obj["config"]
    click.echo(f"Config file: {cfg.get_config_path()}")
    for key in SETTABLE_KEYS:
        value = getattr(cfg, key)
        if key == "token" and value:
            value = value[:4] + "..."
        click.echo(f"  {key}: {value}")


@config.command("set")
@click.argument("key", type=click.Choice(SETTABLE_KEYS))
@click.argument("value")
@click.pass_context
def config_set(ctx: click.Context, key: str, value: str) -> None:
    """Set a setting.

    KEY: Setting name
    VALUE: New value
    """
    cfg: AtlasConfig = ctx.find_root().obj["config"]
    if key == "export_format" and value not in EXPORT_FORMATS:
        click.echo(f"Error: export_format must be one of {', '.join(EXPORT_FORMATS)}", err=True)
        raise SystemExit(1)
    if key == "log_level":
        value = value.upper()
        if value not in LOG_LEVELS:
            click.echo(f"Error: log_level must be one of {', '.join(LOG_LEVELS)}", err=True)
            raise SystemExit(1)
    if key == "theme" and value not in BUILTIN_THEMES:
        click.echo(f"Error: unknown theme '{value}'", err=True)
        raise SystemExit(1)
    setattr(cfg, key, value)
    cfg.save()
    click.echo(f"✅ {key} updated")


@config.command("reset")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def config_reset(ctx: click.Context, yes: bool) -> None:
    """Reset all settings to defaults."""
    if not yes:
        click.confirm("Reset all settings?", abort=True)
    cfg: AtlasConfig = ctx.find_root().obj["config"]
    cfg.reset()
    cfg.save()
    click.echo("✅ Settings reset")


if __name__ == "__main__":
    cli()

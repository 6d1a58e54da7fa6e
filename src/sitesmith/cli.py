"""CLI entry point for Sitesmith."""

import asyncio
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from sitesmith.config import ConfigManager
from sitesmith.editor.extractor import extract_catalog
from sitesmith.editor.mutator import strip_edit_markers
from sitesmith.editor.bridge import RenderBridge
from sitesmith.models.editable_element import ElementType
from sitesmith.services.file_operations import PAGE_FILENAME, atomic_write
from sitesmith.utils.logging import bind_page, configure_logging, get_logger, unbind_page


logger = get_logger(__name__)
console = Console()


def load_config(config_path: Optional[Path]) -> ConfigManager:
    """
    Load configuration from an explicit path or the default location.

    Raises:
        click.ClickException: If config is missing, has invalid permissions, or validation fails
    """
    try:
        if config_path is None:
            return ConfigManager.load_default()
        return ConfigManager.load_from_path(config_path)
    except (FileNotFoundError, PermissionError) as e:
        raise click.ClickException(str(e))
    except ValueError as e:
        raise click.ClickException(f"Configuration validation failed:\n{e}")


def read_page(path: Path) -> str:
    """Read an HTML page, reporting I/O problems as CLI errors."""
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        logger.error("page_read_failed", path=str(path), error=str(e))
        raise click.ClickException(f"Cannot read {path}: {e}")


def write_output(path: Path, content: str) -> None:
    """Write a generated file, reporting I/O problems as CLI errors."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        atomic_write(path, content)
    except OSError as e:
        logger.error("output_write_failed", path=str(path), error=str(e))
        raise click.ClickException(f"Cannot write {path}: {e}")


@click.group()
@click.version_option(version="0.1.0", prog_name="sitesmith")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: ~/.config/sitesmith/config.yaml)",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path]):
    """Sitesmith: generate single-page business websites and edit them live."""
    configure_logging()
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


def _config(ctx: click.Context) -> ConfigManager:
    if "config" not in ctx.obj:
        ctx.obj["config"] = load_config(ctx.obj.get("config_path"))
    return ctx.obj["config"]


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--preview",
    "preview_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Where 'p' writes the preview (default: preview.html next to the page)",
)
@click.pass_context
def edit(ctx: click.Context, path: Path, preview_path: Optional[Path]):
    """
    Edit a generated page in the terminal editor.

    PATH must be a page stored as <folder>/index.html.

    Examples:
        sitesmith edit gen_comp/bakery-20260101T120000/index.html
    """
    from sitesmith.editor.session import EditSession
    from sitesmith.services.file_operations import FilePersistence
    from sitesmith.services.recovery_store import FileRecoveryStore
    from sitesmith.tui.app import SitesmithApp

    path = path.resolve()
    if path.name != PAGE_FILENAME:
        raise click.ClickException(f"Pages are stored as <folder>/{PAGE_FILENAME}; got {path.name}")

    config = _config(ctx)
    logger.info("edit_command_started", path=str(path))

    persistence = FilePersistence(path.parent.parent, base_url=config.storage.base_url)
    handle = persistence.handle_for(path)
    document = persistence.load(handle)

    try:
        recovery_store = FileRecoveryStore(
            config.editor.recovery_path,
            quota_bytes=config.editor.recovery_quota_bytes,
        )
    except OSError as e:
        raise click.ClickException(f"Cannot open recovery directory: {e}")

    session = EditSession(
        document,
        handle,
        persistence,
        recovery_store,
        config=config.editor,
    )

    bind_page(handle)
    try:
        app = SitesmithApp(session, preview_path=preview_path or path.parent / "preview.html")
        app.run()
    finally:
        unbind_page()

    logger.info("edit_command_completed", path=str(path), dirty=session.is_dirty)


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--type",
    "element_type",
    type=click.Choice([t.value for t in ElementType]),
    default=None,
    help="Only list elements of this type",
)
def catalog(path: Path, element_type: Optional[str]):
    """
    List the editable elements of a page.

    Examples:
        sitesmith catalog index.html
        sitesmith catalog index.html --type image
    """
    result = extract_catalog(read_page(path))
    elements = result.of_type(ElementType(element_type)) if element_type else result.elements

    table = Table(title=f"Editable elements in {path.name}")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Type", style="magenta")
    table.add_column("Name")
    table.add_column("Content", overflow="fold")

    for element in elements:
        table.add_row(element.id, element.type.value, element.display_name, element.content)

    console.print(table)
    console.print(f"{len(elements)} element(s)")


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "-o", "--output",
    "output_path",
    type=click.Path(dir_okay=False, path_type=Path),
    required=True,
    help="File to write the preview document to",
)
@click.option("--select", "selected_id", default=None, help="Element id to mark as selected")
@click.option("--iframe", is_flag=True, help="Write a host page embedding the preview in a sandboxed iframe")
def preview(path: Path, output_path: Path, selected_id: Optional[str], iframe: bool):
    """
    Write the instrumented preview document of a page.

    The preview highlights editable elements and reports clicks to the
    embedding page instead of following links.
    """
    result = extract_catalog(read_page(path))
    if selected_id is not None and selected_id not in result:
        raise click.ClickException(f"Unknown element id: {selected_id}")

    sandbox = RenderBridge().render(result.document, result, selected_id)
    write_output(output_path, sandbox.host_page(f"Preview of {path.parent.name}") if iframe else sandbox.html)

    click.echo(f"Preview written to {output_path} ({len(sandbox.surfaces)} editable elements)")
    if sandbox.unresolved:
        click.echo(f"{len(sandbox.unresolved)} element(s) could not be located and are not clickable")


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "-o", "--output",
    "output_path",
    type=click.Path(dir_okay=False, path_type=Path),
    required=True,
    help="File to write the clean document to",
)
def export(path: Path, output_path: Path):
    """Write a copy of a page without editor markers."""
    write_output(output_path, strip_edit_markers(read_page(path)))
    click.echo(f"Exported {path} to {output_path}")


@cli.command()
@click.option("--name", "business_name", required=True, help="Business name")
@click.option("--type", "business_type", required=True, help="Kind of business (e.g. bakery)")
@click.option("--description", default="", help="Short description of the business")
@click.option("--service", "services", multiple=True, help="Service to feature (repeatable)")
@click.pass_context
def generate(ctx: click.Context, business_name: str, business_type: str, description: str, services: tuple):
    """
    Generate a new page with the configured LLM.

    Examples:
        sitesmith generate --name "Crumb & Co" --type bakery --service Bread --service Cakes
    """
    from pydantic import ValidationError
    from sitesmith.models.page import BusinessInfo
    from sitesmith.services.exceptions import GenerationError
    from sitesmith.services.file_operations import FilePersistence
    from sitesmith.services.generation import LLMGenerationService

    config = _config(ctx)
    try:
        llm_config = config.llm
    except ValueError as e:
        raise click.ClickException(str(e))

    try:
        info = BusinessInfo(
            business_name=business_name,
            business_type=business_type,
            description=description,
            services=list(services),
        )
    except ValidationError as e:
        raise click.ClickException(f"Invalid business details:\n{e}")

    logger.info("generate_command_started", business_type=business_type)
    persistence = FilePersistence(config.storage.output_path, base_url=config.storage.base_url)
    service = LLMGenerationService(llm_config, persistence)

    try:
        with console.status("[bold green]Generating website..."):
            page = asyncio.run(service.generate(info))
    except (GenerationError, OSError) as e:
        logger.error("generate_command_failed", error=str(e))
        raise click.ClickException(f"Generation failed: {e}")

    click.echo(f"Generated {config.storage.output_path / page.file_path}")
    logger.info("generate_command_completed", file_path=page.file_path)


def main():
    """Main entry point for setuptools console script."""
    cli()


if __name__ == "__main__":
    main()

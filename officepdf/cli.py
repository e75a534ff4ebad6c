"""CLI entry point for officepdf."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
import yaml
from pydantic import ValidationError
from rich import print as rprint
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from officepdf.config import OfficePdfConfig, load_config
from officepdf.config.loader import DEFAULT_CONFIG_TEMPLATE
from officepdf.converter import BatchResult, ConversionOptions, ConverterError
from officepdf.log import configure_logging
from officepdf.service import PdfConverter

app = typer.Typer(
    name="officepdf",
    help="Convert office documents to PDF with headless LibreOffice.",
)

config_app = typer.Typer(help="Manage officepdf configuration.")
app.add_typer(config_app, name="config")

# Global state
_config: OfficePdfConfig | None = None


def _get_config() -> OfficePdfConfig:
    if _config is None:
        return load_config()
    return _config


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to officepdf.yaml")
    ] = None,
    log_level: Annotated[
        str | None, typer.Option("--log-level", help="debug | info | warn | error")
    ] = None,
) -> None:
    """Global options."""
    global _config
    try:
        _config = load_config(config)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    configure_logging(log_level or _config.log_level, _config.log_format)


def _parse_pairs(pairs: list[str]) -> dict[str, str]:
    """Turn ``key=value`` strings into a dict."""
    parsed: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"Expected key=value, got '{pair}'", param_hint="--option")
        parsed[key.strip()] = value
    return parsed


def _build_options(**values) -> ConversionOptions:
    extras = values.pop("extra", None) or {}
    set_values = {k: v for k, v in values.items() if v is not None}
    try:
        return ConversionOptions.model_validate({**extras, **set_values})
    except ValidationError as e:
        raise typer.BadParameter(str(e)) from e


def _display_batch(result: BatchResult) -> None:
    """Per-file outcomes as a Rich table followed by a summary panel."""
    table = Table(title=f"Conversions ({result.total})")
    table.add_column("Input", style="cyan")
    table.add_column("Status")
    table.add_column("Output / Error")
    for outcome in result.outcomes:
        if outcome.success:
            status = "[green]ok[/green]"
            detail = outcome.remote_output_key or outcome.output_path or ""
        else:
            status = f"[red]{outcome.error_kind.value if outcome.error_kind else 'failed'}[/red]"
            detail = outcome.error_message or ""
        table.add_row(outcome.request.display_name, status, detail)
    rprint(table)

    border = "green" if result.success else "red"
    rprint(
        Panel(
            f"[dim]Succeeded:[/dim] {result.succeeded}\n"
            f"[dim]Failed:[/dim]    {result.failed}\n"
            f"[dim]Output:[/dim]    {result.cloud_output_dir or result.output_dir}\n"
            f"[dim]Disk:[/dim]      {result.storage_disk or '-'}",
            title="Batch Result",
            border_style=border,
        )
    )


@app.command()
def convert(
    file: str = typer.Argument(..., help="Document to convert"),
    output: str | None = typer.Option(None, "--output", "-o", help="Output file path"),
    to: str | None = typer.Option(
        None, "--to", help="Target format (e.g. docx, odt); defaults to PDF"
    ),
    timeout: float | None = typer.Option(None, "--timeout", help="Seconds before giving up"),
    native: bool = typer.Option(False, "--native", help="Prefer a native renderer plugin"),
) -> None:
    """Convert a single document."""
    cfg = _get_config()
    converter = PdfConverter(cfg)
    options = _build_options(timeout=timeout, native=native or None)

    try:
        if to and to.split(":", 1)[0].lower() != "pdf":
            if not output:
                output = str(Path(file).with_suffix(f".{to.split(':', 1)[0].lower()}"))
            result = converter.convert_to(file, output, to, options)
        else:
            result = converter.convert(file, output, to, options)
    except ConverterError as e:
        rprint(f"[red]Error:[/red] {e}")
        if e.diagnostics:
            rprint(Panel(e.diagnostics.strip() or "(no output)", title="Renderer output"))
        raise typer.Exit(1)

    rprint(f"[green]Written to[/green] {result}")


@app.command()
def batch(
    files: list[str] = typer.Argument(..., help="Documents (or disk keys) to convert"),
    output_dir: str | None = typer.Option(None, "--output-dir", "-d", help="Output directory"),
    disk: str | None = typer.Option(None, "--disk", help="Disk the inputs live on"),
    output_disk: str | None = typer.Option(None, "--output-disk", help="Disk to write outputs to"),
    workers: int | None = typer.Option(None, "--workers", "-w", help="Parallel conversions"),
    timeout: float | None = typer.Option(None, "--timeout", help="Seconds per file"),
    page_size: str | None = typer.Option(None, "--page-size", help="A4, A3, Letter, Tabloid ..."),
    orientation: str | None = typer.Option(None, "--orientation", help="portrait | landscape"),
    native: bool = typer.Option(False, "--native", help="Prefer native renderer plugins"),
    option: list[str] = typer.Option([], "--option", help="Extra key=value option"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
) -> None:
    """Convert many documents in parallel."""
    cfg = _get_config()
    converter = PdfConverter(cfg)
    options = _build_options(
        workers=workers,
        timeout=timeout,
        page_size=page_size,
        orientation=orientation,
        native=native or None,
        extra=_parse_pairs(option),
    )

    try:
        result = converter.convert_batch(
            files, output_dir, options, disk=disk, output_disk=output_disk
        )
    except (ConverterError, ValueError) as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if as_json:
        typer.echo(result.model_dump_json(indent=2))
    else:
        _display_batch(result)

    if not result.success:
        raise typer.Exit(1)


@config_app.command("show")
def config_show() -> None:
    """Show current resolved configuration."""
    cfg = _get_config()
    rprint(Syntax(yaml.dump(cfg.model_dump(mode="json"), default_flow_style=False), "yaml"))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create default officepdf.yaml in current directory."""
    target = Path("officepdf.yaml")
    if target.exists() and not force:
        rprint("[yellow]officepdf.yaml already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {target}")

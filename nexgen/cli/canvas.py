"""CLI entry point for the Nexgen Canvas authoring workflows."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import httpx
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from apps.canvas.client import CanvasClient, CanvasConfig
from apps.session.headers import ModuleResolutionError, build_session_header_titles, resolve_module_by_name
from apps.session.overview import build_module_overview
from apps.session.placement import PlacementError, publish_teacher_notes, resolve_page_title
from apps.session.teacher_notes import build_teacher_notes_for_session
from nexgen.core.config import DEFAULT_CONFIG_PATH, CanvasSettings, load_pipeline_config
from nexgen.core.provenance import ProvenanceLogger

app = typer.Typer(help="Run Nexgen Canvas automation workflows.", no_args_is_help=True)
console = Console()
LOGGER = logging.getLogger("nexgen.cli")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO)


def _load_settings() -> CanvasSettings:
    try:
        return CanvasSettings.from_env()
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _resolve_course_id(course_id: Optional[int], settings: CanvasSettings) -> int:
    resolved = course_id if course_id is not None else settings.default_course_id
    if resolved is None:
        raise typer.BadParameter("Provide --course-id or set CANVAS_TEST_COURSE_ID.", param_hint="--course-id")
    return resolved


def _open_client(settings: CanvasSettings) -> CanvasClient:
    return CanvasClient(CanvasConfig(base_url=settings.base_url, api_token=settings.api_token))


def _fail(exc: Exception) -> None:
    console.print(f"[bold red]error:[/bold red] {escape(str(exc))}", markup=True, highlight=False)
    raise typer.Exit(code=1)


def _print_table(headers: list[str], rows: list[dict], keys: list[str]) -> None:
    table = Table(*headers)
    for row in rows:
        table.add_row(*[escape(str(row.get(key) or "")) for key in keys])
    console.print(table)


@app.command("teacher-notes")
def teacher_notes(
    session_name: str = typer.Option(..., "--session-name", help="Exact Canvas module name for the session."),
    page_title: Optional[str] = typer.Option(
        None,
        "--page-title",
        help="Canvas page title for the generated notes (defaults to teacher_notes.page_title).",
    ),
    course_id: Optional[int] = typer.Option(None, "--course-id", help="Canvas course id (defaults to CANVAS_TEST_COURSE_ID)."),
    draft: bool = typer.Option(
        False,
        "--draft",
        help="Publish/update a draft notes page and leave live module placement unchanged.",
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Generate and preview without uploading."),
    require_archive: Optional[bool] = typer.Option(
        None,
        "--require-archive/--allow-archive-failure",
        help="Abort the overwrite when archiving the previous page fails.",
        show_default=False,
    ),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", help="Pipeline YAML with session and notes defaults."),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Append a JSONL record of every Canvas write."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Generate Teacher Notes from an existing session module and insert the page at the top."""

    _configure_logging(verbose)
    try:
        pipeline = load_pipeline_config(config)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc
    settings = _load_settings()
    target_course = _resolve_course_id(course_id, settings)
    notes_config = pipeline.teacher_notes
    title = resolve_page_title(page_title or notes_config.page_title, draft=draft)
    strict_archive = notes_config.require_archive if require_archive is None else require_archive

    client = _open_client(settings)
    try:
        built = build_teacher_notes_for_session(
            client,
            target_course,
            session_name,
            title,
            max_workers=notes_config.fetch_workers,
        )

        typer.echo(f"Course: {target_course}")
        typer.echo(f"Session module: {built.module.name} ({built.module.id})")
        typer.echo(f"Mode: {'draft' if draft else 'live'}")
        typer.echo(f"Source pages: {len(built.module_pages)}")
        typer.echo(f"Teacher notes title: {title}")
        typer.echo(f"Target module position: {built.insertion_position}")

        if dry_run:
            typer.echo("Dry run: no Canvas updates performed.")
            typer.echo("Generated HTML preview:")
            typer.echo("\n".join(built.notes_html.split("\n")[: notes_config.preview_lines]))
            return

        provenance = ProvenanceLogger(log_file.expanduser().resolve()) if log_file else None
        report = publish_teacher_notes(
            client,
            target_course,
            built,
            title,
            draft=draft,
            require_archive=strict_archive,
            provenance=provenance,
        )
    except (ModuleResolutionError, PlacementError, httpx.HTTPError, RuntimeError) as exc:
        _fail(exc)
        return
    finally:
        client.close()

    if report.archived_title:
        typer.echo(f"Archived previous page content: {report.archived_title}")
    typer.echo("Created page." if report.created_page else "Updated existing page.")
    if draft:
        typer.echo("Draft mode: module placement unchanged.")
    else:
        if report.created_module_item:
            typer.echo("Added page to session module.")
        if report.moved_module_item:
            typer.echo("Moved module item to top of session.")
        if report.placement_unchanged and not report.warnings:
            typer.echo("Module item placement already correct.")
    for warning in report.warnings:
        console.print(f"[yellow]warning:[/yellow] {warning}", highlight=False)
    typer.echo(f"Page URL: {settings.page_link(target_course, report.page_url)}")


@app.command("session-headers")
def session_headers(
    module_name: str = typer.Option(..., "--module-name", help="Canvas module name to add headers to."),
    session: int = typer.Option(..., "--session", help="Session number (e.g. 1 for Session 01)."),
    course_id: Optional[int] = typer.Option(None, "--course-id", help="Canvas course id (defaults to CANVAS_TEST_COURSE_ID)."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show headers without creating them."),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", help="Pipeline YAML with session header templates."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Create session text headers inside an existing Canvas module."""

    _configure_logging(verbose)
    try:
        pipeline = load_pipeline_config(config)
        headers = build_session_header_titles(session, pipeline.sessions)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    settings = _load_settings()
    target_course = _resolve_course_id(course_id, settings)

    client = _open_client(settings)
    try:
        module = resolve_module_by_name(client, target_course, module_name)
        typer.echo(f"Module: {module.name} ({module.id})")
        typer.echo(f"Session: {str(session).zfill(pipeline.sessions.session_number_pad)}")
        typer.echo("Headers:")
        for title in headers:
            typer.echo(f"- {title}")

        if dry_run:
            typer.echo("Dry run: no module items created.")
            return

        for title in headers:
            client.create_module_subheader(target_course, module.id, title)
            LOGGER.debug("Created subheader %r in module %s", title, module.id)
    except (ModuleResolutionError, httpx.HTTPError, RuntimeError) as exc:
        _fail(exc)
        return
    finally:
        client.close()

    typer.echo("Session headers created.")


@app.command("module-overview")
def module_overview(
    module_name: Optional[str] = typer.Option(
        None,
        "--module-name",
        help="Inspect one module in detail instead of listing every module.",
    ),
    course_id: Optional[int] = typer.Option(None, "--course-id", help="Canvas course id (defaults to CANVAS_TEST_COURSE_ID)."),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of a table."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Read-only summary of course modules, or of the items in one module."""

    _configure_logging(verbose)
    settings = _load_settings()
    target_course = _resolve_course_id(course_id, settings)

    client = _open_client(settings)
    try:
        payload = build_module_overview(client, target_course, module_name)
    except (ModuleResolutionError, httpx.HTTPError, RuntimeError) as exc:
        _fail(exc)
        return
    finally:
        client.close()

    if as_json:
        typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))
        return

    typer.echo(payload["summary"])
    details = payload["details"]
    if "modules" in details:
        _print_table(["ID", "Name"], details["modules"], ["id", "name"])
        return
    for item_type, count in details["itemCountsByType"].items():
        typer.echo(f"{item_type}: {count}")
    _print_table(
        ["Position", "Type", "Title", "Page URL"],
        details["items"],
        ["position", "type", "title", "page_url"],
    )


def main() -> None:  # pragma: no cover - console script
    app()


if __name__ == "__main__":  # pragma: no cover - script entry point
    main()

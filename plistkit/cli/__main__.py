from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

import typer

from ..core.codec import base64_to_hex, hex_to_base64
from ..core.config_loader import ConfigLoader
from ..core.document import load, save
from ..core.errors import PlistError
from ..core.log import configure_logging
from ..core.merge import combine as combine_documents
from ..core.merge import diff as diff_documents
from ..core.mutate import build_leaf, remove_value, set_forced, set_value
from ..core.navigate import find_paths, get as get_node
from ..core.types import (
    DiffMode,
    DiffOptions,
    ForcedStep,
    Kind,
    TypeToken,
    format_path,
    parse_result_filter,
    render,
    to_native,
)
from ..state.data import AppDocument
from ..state.discovery import find_data_documents
from ..state.errors import StateError

app = typer.Typer(help="Plistkit CLI")


def _loader(ctx: typer.Context) -> ConfigLoader:
    return ctx.obj if isinstance(ctx.obj, ConfigLoader) else ConfigLoader()


def _fail(message: str) -> None:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(1)


def _open(file: Path):
    doc = load(file)
    if doc is None:
        _fail(f"could not load {file}")
    return doc


def _step(text: str):
    # All-digit steps on the command line are array indices
    return int(text) if text.isdigit() else text


def _forced_step(text: str) -> ForcedStep:
    kind, sep, key = text.partition(":")
    if not sep:
        raise ValueError(f"Step {text!r} must look like dict:key or array:index")
    return ForcedStep(TypeToken.parse(kind), key)


def _write(doc, file: Path) -> None:
    if not save(doc, file):
        _fail(f"could not save {file}")


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, "--config", help="Path to plistkit.yaml"),
    log_level: Optional[str] = typer.Option(None, "--log-level"),
):
    loader = ConfigLoader(config)
    try:
        options = loader.logging_options()
    except ValueError as e:
        _fail(str(e))
    configure_logging(
        log_level or options.level,
        log_file=options.file,
        max_bytes=options.max_bytes,
        backup_count=options.backups,
    )
    ctx.obj = loader


@app.command()
def get(file: Path, path: List[str] = typer.Argument(None)):
    doc = _open(file)
    node = get_node(doc, *[_step(step) for step in path or []])
    if node is None:
        _fail(f"nothing at {format_path([_step(step) for step in path or []])}")
    if node.kind in (Kind.DICT, Kind.ARRAY):
        typer.echo(json.dumps(to_native(node, convert_all=True), indent=2))
    else:
        typer.echo(render(node))


@app.command()
def find(file: Path, selectors: List[str]):
    doc = _open(file)
    paths = find_paths(doc, *selectors)
    typer.echo(json.dumps([format_path(p) for p in paths], indent=2))


@app.command("set")
def set_(
    file: Path,
    path: List[str],
    value: str = typer.Option(..., "--value"),
    type_: str = typer.Option("string", "--type"),
):
    doc = _open(file)
    try:
        node = build_leaf(TypeToken.parse(type_), value)
    except (PlistError, ValueError, TypeError) as e:
        _fail(str(e))
    if not set_value(doc, [_step(step) for step in path], node):
        _fail(f"could not set {format_path([_step(step) for step in path])}")
    _write(doc, file)
    typer.echo("OK")


@app.command("set-forced")
def set_forced_(
    file: Path,
    steps: List[str],
    type_: str = typer.Option(..., "--type"),
    value: Optional[str] = typer.Option(None, "--value"),
    create: bool = typer.Option(False, "--create", help="Start a new document if FILE is missing"),
):
    doc = load(file)
    if doc is None:
        if not create:
            _fail(f"could not load {file}")
        doc = build_leaf(TypeToken.DICT, None)
    try:
        set_forced(doc, [_forced_step(step) for step in steps], type_, value)
    except (PlistError, ValueError, TypeError) as e:
        _fail(str(e))
    _write(doc, file)
    typer.echo("OK")


@app.command()
def remove(file: Path, path: List[str]):
    doc = _open(file)
    if not remove_value(doc, [_step(step) for step in path]):
        _fail(f"could not remove {format_path([_step(step) for step in path])}")
    _write(doc, file)
    typer.echo("OK")


@app.command()
def diff(
    ctx: typer.Context,
    first: Path,
    second: Path,
    max_depth: Optional[int] = typer.Option(None, "--max-depth"),
    output_types: Optional[str] = typer.Option(None, "--output-types"),
):
    try:
        defaults = _loader(ctx).diff_options()
        result_filter = (
            parse_result_filter(output_types) if output_types is not None else defaults.result_filter
        )
    except ValueError as e:
        _fail(str(e))
    options = DiffOptions(
        mode=DiffMode.EMIT,
        max_depth=defaults.max_depth if max_depth is None else max_depth,
        result_filter=result_filter,
        emitter=lambda record: typer.echo(str(record)),
    )
    diff_documents(_open(first), _open(second), options)


@app.command()
def combine(
    first: Path,
    second: Path,
    out: Optional[Path] = typer.Option(None, "--out", help="Write here instead of FIRST"),
):
    doc = _open(first)
    try:
        combine_documents(doc, _open(second))
    except PlistError as e:
        _fail(str(e))
    _write(doc, out or first)
    typer.echo("OK")


@app.command("print")
def print_(file: Path):
    doc = _open(file)
    typer.echo(json.dumps(to_native(doc, convert_all=True), indent=2))


@app.command("hex-to-base64")
def hex_to_base64_(text: str):
    try:
        typer.echo(hex_to_base64(text))
    except PlistError as e:
        _fail(str(e))


@app.command("base64-to-hex")
def base64_to_hex_(text: str):
    try:
        typer.echo(base64_to_hex(text))
    except PlistError as e:
        _fail(str(e))


@app.command()
def apps(path: Path):
    rows = []
    failed = False
    for doc_path in find_data_documents(path):
        try:
            app_doc = AppDocument.load(doc_path)
        except StateError as e:
            failed = True
            rows.append({"path": str(doc_path), "error": str(e)})
            continue
        rows.append(
            {
                "path": str(doc_path),
                "name": app_doc.name,
                "type": app_doc.monitor_type,
                "disabled": app_doc.disabled,
                "lastStatus": app_doc.last_status,
            }
        )
    typer.echo(json.dumps(rows, indent=2))
    if failed:
        raise typer.Exit(1)


@app.command("check-updates")
def check_updates(
    ctx: typer.Context,
    path: Path,
    settings: Optional[Path] = typer.Option(None, "--settings", help="Default settings document"),
    ignore_mod_date: bool = typer.Option(False, "--ignore-mod-date"),
):
    # Lazy import: only this command talks to the network
    from ..state.monitor import RemoteMonitor
    from ..state.settings import DefaultSettings
    from ..state.status import StatusTracker

    settings_path = settings or _loader(ctx).settings_path()
    if settings_path is None:
        _fail("no default settings document given (--settings or plistkit.yaml)")
    settings_doc = load(settings_path, expect=Kind.DICT)
    if settings_doc is None:
        _fail(f"could not load {settings_path}")
    try:
        defaults = DefaultSettings.from_document(settings_doc)
    except StateError as e:
        _fail(str(e))

    tracker = StatusTracker.open(defaults.status_file)
    results = []
    for doc_path in find_data_documents(path):
        try:
            app_doc = AppDocument.load(doc_path)
        except StateError as e:
            results.append({"path": str(doc_path), "error": str(e)})
            continue
        if app_doc.disabled:
            results.append({"name": app_doc.name, "status": "disabled"})
            continue
        effective = defaults.overlay(app_doc)
        monitor = RemoteMonitor(effective.user_agent)
        try:
            remote = monitor.last_modified(app_doc.url)
        finally:
            monitor.close()
        if remote is None:
            message = "ERROR: Modification date of download not found."
        elif monitor.has_changed(app_doc, remote, ignore_mod_date):
            message = "New version found."
        else:
            message = "No new version found."
        tracker.update_status(app_doc, message)
        results.append({"name": app_doc.name, "status": message})
    typer.echo(json.dumps(results, indent=2))


if __name__ == "__main__":
    app()

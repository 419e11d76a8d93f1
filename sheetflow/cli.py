"""Typer based command line entry points for SheetFlow."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import pandas as pd
import typer

from sheetflow.core.errors import ConfigError, SessionError
from sheetflow.core.profiles import get_profile, load_profiles
from sheetflow_io.excel_reader import ImportResult, import_with_request
from sheetflow_io.schema import ExtractionRequest, Shape
from sheetflow_io.secret import SecretBuffer
from sheetflow_io.session import open_session
from sheetflow_io.utils.log import get_logger, set_level

OUTPUT_FORMATS = {"json", "csv"}

app = typer.Typer(help="Import a worksheet as a key/value mapping or a list of records.")


def _validate_format(value: str) -> str:
    value = value.lower()
    if value not in OUTPUT_FORMATS:
        raise typer.BadParameter("format must be one of json, csv")
    return value


def _validate_shape(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    try:
        return Shape.parse(value).value
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        "WARNING",
        "--log-level",
        help="Set console logging level (e.g. DEBUG/INFO/WARNING).",
    ),
) -> None:
    """Configure global CLI behaviour before executing commands."""

    try:
        set_level(log_level)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _json_key(key: Any) -> Any:
    if key is None or isinstance(key, (str, int, float, bool)):
        return key
    return str(key)


def _to_jsonable(result: ImportResult) -> Any:
    if isinstance(result, dict):
        return {_json_key(k): v for k, v in result.items()}
    return [{_json_key(k): v for k, v in record.items()} for record in result]


def render(result: ImportResult, fmt: str) -> str:
    """Serialise an import result as JSON or CSV text."""

    if fmt == "csv":
        if isinstance(result, dict):
            frame = pd.DataFrame(list(result.items()), columns=["key", "value"])
        else:
            columns = list(dict.fromkeys(key for record in result for key in record))
            frame = pd.DataFrame(result, columns=columns)
        return frame.to_csv(index=False)
    return json.dumps(_to_jsonable(result), ensure_ascii=False, indent=2, default=str)


def _build_request(
    profile_name: Optional[str],
    profiles_file: Optional[Path],
    overrides: dict[str, Any],
) -> tuple[ExtractionRequest, Optional[str]]:
    payload: dict[str, Any] = {}
    sheet: Optional[str] = None
    if profile_name:
        profile = get_profile(profile_name, profiles_file)
        request = profile.request
        sheet = profile.sheet
        payload = {
            "shape": request.shape.value,
            "top_row": request.top_row,
            "key_column": request.key_column,
            "value_column": request.value_column,
            "skip_rows": sorted(request.row_skip),
            "skip_columns": sorted(request.column_skip),
        }
    payload.update({key: value for key, value in overrides.items() if value is not None})
    try:
        return ExtractionRequest.from_mapping(payload), sheet
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc


@app.command("import")
def import_command(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, resolve_path=True, help="Workbook or CSV file"),
    sheet: Optional[str] = typer.Option(None, "--sheet", help="Worksheet name (defaults to the active sheet)"),
    shape: Optional[str] = typer.Option(
        None, "--shape", callback=_validate_shape, help="mapping or records (default: records)"
    ),
    top_row: Optional[int] = typer.Option(None, "--top-row", min=1, help="Header row number"),
    key_column: Optional[int] = typer.Option(None, "--key-column", min=1, help="Key column (mapping shape)"),
    value_column: Optional[int] = typer.Option(None, "--value-column", min=1, help="Value column (mapping shape)"),
    skip_rows: Optional[str] = typer.Option(None, "--skip-rows", help="Rows to ignore, e.g. '1,3-5'"),
    skip_columns: Optional[str] = typer.Option(None, "--skip-columns", help="Columns to ignore (records shape)"),
    profile: Optional[str] = typer.Option(None, "--profile", help="Profile name from profiles.yaml"),
    profiles_file: Optional[Path] = typer.Option(None, "--profiles-file", help="Override profiles YAML file"),
    password_prompt: bool = typer.Option(
        False, "--password-prompt/--no-password-prompt", help="Prompt for the workbook password"
    ),
    fmt: str = typer.Option("json", "--format", callback=_validate_format, help="Output format: json or csv"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write output to a file instead of stdout"),
) -> None:
    """Import one worksheet and print it as JSON or CSV."""

    logger = get_logger("cli")
    try:
        request, profile_sheet = _build_request(
            profile,
            profiles_file,
            {
                "shape": shape,
                "top_row": top_row,
                "key_column": key_column,
                "value_column": value_column,
                "skip_rows": skip_rows,
                "skip_columns": skip_columns,
            },
        )
    except ConfigError as exc:
        logger.error("cli.import config_error: %s", exc)
        typer.secho(f"Configuration error: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2) from exc

    secret: Optional[SecretBuffer] = None
    if password_prompt:
        secret = SecretBuffer(typer.prompt("Password", hide_input=True))

    try:
        result = import_with_request(path, request, sheet=sheet or profile_sheet, password=secret)
    except SessionError as exc:
        typer.secho(f"Import failed: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc
    finally:
        if secret is not None:
            secret.wipe()

    text = render(result, fmt)
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text, encoding="utf-8")
        logger.info("Output written", extra={"output": str(output), "entries": len(result)})
        typer.echo(f"Wrote {len(result)} entries to {output}", err=True)
    else:
        typer.echo(text)


@app.command("sheets")
def sheets_command(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, resolve_path=True, help="Workbook or CSV file"),
    password_prompt: bool = typer.Option(
        False, "--password-prompt/--no-password-prompt", help="Prompt for the workbook password"
    ),
) -> None:
    """List worksheet names."""

    secret = SecretBuffer(typer.prompt("Password", hide_input=True)) if password_prompt else None
    try:
        with open_session(path, secret) as session:
            names = session.sheet_names
    except SessionError as exc:
        typer.secho(f"Unable to read workbook: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc
    finally:
        if secret is not None:
            secret.wipe()
    for name in names:
        typer.echo(name)


@app.command("profiles")
def profiles_command(
    profiles_file: Optional[Path] = typer.Option(None, "--profiles-file", help="Override profiles YAML file"),
) -> None:
    """List configured extraction profiles."""

    try:
        profiles = load_profiles(profiles_file)
    except ConfigError as exc:
        typer.secho(f"Configuration error: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2) from exc
    for name, profile in profiles.items():
        line = f"{name}\t{profile.request.shape.value}"
        if profile.description:
            line += f"\t{profile.description}"
        typer.echo(line)


def main() -> None:
    app()


if __name__ == "__main__":
    main()

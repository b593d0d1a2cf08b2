#!/usr/bin/env python3
"""
Extract vaga fields from a markdown note.

Usage:
    python scripts/parse_vaga.py notes/saipem.md
    python scripts/parse_vaga.py notes/saipem.md --json
    python scripts/parse_vaga.py notes/saipem.md --record
"""

import json
from enum import Enum
from pathlib import Path

import typer

from vagatrack.contexts.intake.field_extractor import parse_vaga_file
from vagatrack.contexts.intake.form_mapper import (
    EXTRACTED_RATING_SCALES,
    VagaFormData,
    build_vaga_record,
    merge_parsed_fields,
)
from vagatrack.contexts.intake.logger import setup_intake_logger
from vagatrack.contexts.intake.vaga_data_structure import VAGA_FIELDS
from vagatrack.utils.logger import session_log_dir

app = typer.Typer(help="Extract vaga fields from markdown notes.")


def _plain(value):
    return value.value if isinstance(value, Enum) else value


@app.command()
def main(
    markdown_file: Path = typer.Argument(..., help="Markdown file with the vaga notes (.md)"),
    as_json: bool = typer.Option(False, "--json", help="Print extracted fields as JSON"),
    record: bool = typer.Option(
        False, "--record", help="Print the record that would be saved for a new vaga"
    ),
    log: bool = typer.Option(False, "--log", help="Write a detailed log under LOGS_PATH"),
):
    """Parse a vaga markdown file and display the recognized fields."""
    if not markdown_file.exists():
        typer.echo(f"ERROR: File not found: {markdown_file}", err=True)
        raise typer.Exit(1)

    if log:
        log_dir = session_log_dir("parse")
        log_file = setup_intake_logger(log_dir, source=markdown_file.name)
        typer.echo(f"Log file: {log_file}")

    try:
        fields = parse_vaga_file(markdown_file)
    except ValueError as e:
        typer.echo(f"ERROR: {e}", err=True)
        raise typer.Exit(1)

    if record:
        form = merge_parsed_fields(VagaFormData(), fields, scales=EXTRACTED_RATING_SCALES)
        typer.echo(json.dumps(build_vaga_record(form), ensure_ascii=False, indent=2))
        return

    if as_json:
        plain = {key: _plain(value) for key, value in fields.items()}
        typer.echo(json.dumps(plain, ensure_ascii=False, indent=2))
        return

    typer.echo(f"Parsing {markdown_file.name}")
    typer.echo(f"\n=== Fields ({len(fields)}/{len(VAGA_FIELDS)}) ===")
    for name in VAGA_FIELDS:
        if name in fields:
            value = str(_plain(fields[name]))
            if "\n" in value:
                value = value.split("\n", 1)[0] + " ..."
            typer.echo(f"  {name}: {value}")

    missing = [name for name in VAGA_FIELDS if name not in fields]
    if missing:
        typer.echo("\n=== Not found ===")
        typer.echo(f"  {', '.join(missing)}")

    if fields:
        typer.secho("\n✓ Parsing successful", fg=typer.colors.GREEN)
    else:
        typer.secho("\n! No fields recognized", fg=typer.colors.YELLOW)


if __name__ == "__main__":
    app()

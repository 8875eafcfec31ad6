"""
ElfLens CLI
============

Click-based command-line interface.  One group carries the options every
command shares (configuration, verbosity, colour, output file, editor);
each subcommand opens the file in a :class:`~elflens.core.session.Session`.

Usage::

    # Validated header and section table
    elflens header a.out

    # Disassemble .text
    elflens disasm a.out

    # JSON listing written to a file, then opened in $EDITOR
    elflens -o listing.json --edit disasm a.out --json

    # Hex dump with 8 columns in groups of 4
    elflens hexdump a.out --columns 8 --group 4

    # Search for a string or a hex byte sequence
    elflens search a.out .shstrtab
    elflens search a.out "7f454c46" --hex

Exit status is 0 on success and 1 when the file cannot be read, its header
is rejected, its section table is corrupt, or an argument is invalid.

References:
    - Click documentation: https://click.palletsprojects.com/
"""

from __future__ import annotations

import json
from typing import Optional

import click

from shared.config import LensConfig
from shared.console import LensConsole
from shared.logger import logger_from_config

from elflens import __version__
from elflens.core.errors import SectionTableError
from elflens.core.session import Session
from elflens.core.sink import OutputSink
from elflens.output.console import LensConsoleOutput
from elflens.output.report import ListingReportGenerator


# ===================================================================== #
#  Helpers
# ===================================================================== #

def _fail(ctx: click.Context, message: str) -> None:
    """Report *message* as an error and exit with status 1."""
    ctx.obj["console"].error(message)
    ctx.obj["logger"].error(message)
    ctx.exit(1)


def _open_session(ctx: click.Context, path: str) -> Session:
    """Open *path*, exiting with status 1 and the diagnostics on failure."""
    sink = OutputSink()
    session = Session.open(
        path,
        config=ctx.obj["config"],
        logger=ctx.obj["session_logger"],
        sink=sink,
    )
    if session is None:
        _report_diagnostics(ctx, sink)
    return session


def _report_diagnostics(ctx: click.Context, sink: OutputSink) -> None:
    console: LensConsole = ctx.obj["console"]
    for line in sink.lines():
        console.error(line)
    ctx.exit(1)


def _require_header(ctx: click.Context, session: Session):
    header = session.elf_header()
    if header is None:
        _report_diagnostics(ctx, session.sink)
    return header


def _save(ctx: click.Context, text: str) -> None:
    """Write *text* to ``--output`` and optionally open it in the editor."""
    reporter: ListingReportGenerator = ctx.obj["reporter"]
    path = reporter.generate_text(text, ctx.obj["output"])
    _saved(ctx, path)


def _saved(ctx: click.Context, path: str) -> None:
    ctx.obj["console"].success(f"Output saved to: {path}")
    ctx.obj["logger"].info("Wrote %s", path)
    if ctx.obj["edit"]:
        editor = ctx.obj["config"].global_settings.editor or None
        click.edit(filename=path, editor=editor)


# ===================================================================== #
#  CLI Group
# ===================================================================== #

@click.group()
@click.version_option(__version__, prog_name="elflens")
@click.option(
    "--config", "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Path to an ElfLens configuration file (TOML).",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    default=False,
    help="Enable debug logging.",
)
@click.option(
    "--no-color",
    is_flag=True,
    default=False,
    help="Disable coloured output.",
)
@click.option(
    "--output", "-o",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write the command's output to this file instead of the terminal.",
)
@click.option(
    "--edit",
    is_flag=True,
    default=False,
    help="Open the output file in $EDITOR afterwards (requires --output).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Optional[str],
    verbose: bool,
    no_color: bool,
    output: Optional[str],
    edit: bool,
) -> None:
    """ElfLens -- ELF64 header parser and AArch64 disassembler."""
    ctx.ensure_object(dict)

    config = LensConfig.load(config_path)
    console = LensConsole(no_color=no_color)

    ctx.obj["config"] = config
    ctx.obj["console"] = console
    ctx.obj["logger"] = logger_from_config("cli", config, verbose=verbose)
    ctx.obj["session_logger"] = logger_from_config("session", config, verbose=verbose)
    ctx.obj["display"] = LensConsoleOutput(console)
    ctx.obj["reporter"] = ListingReportGenerator()
    ctx.obj["output"] = output
    ctx.obj["edit"] = edit
    ctx.obj["no_color"] = no_color

    if edit and not output:
        _fail(ctx, "--edit requires --output")


# ===================================================================== #
#  Subcommands
# ===================================================================== #

@cli.command()
@click.argument("path", type=click.Path(dir_okay=False))
@click.pass_context
def header(ctx: click.Context, path: str) -> None:
    """Validate the ELF header of PATH and list its sections."""
    session = _open_session(ctx, path)
    elf = _require_header(ctx, session)
    summary = elf.summary()

    if ctx.obj["output"]:
        _save(ctx, summary.model_dump_json(indent=2) + "\n")
        return

    display: LensConsoleOutput = ctx.obj["display"]
    display.display_header(summary, source=path)
    try:
        display.display_sections(list(elf.section_table().entries()))
    except SectionTableError as exc:
        _fail(ctx, str(exc))


@cli.command()
@click.argument("path", type=click.Path(dir_okay=False))
@click.option(
    "--section", "-s",
    default=None,
    help="Section to disassemble.  Default: [disasm] code_section (.text).",
)
@click.option(
    "--json", "json_output",
    is_flag=True,
    default=False,
    help="Emit the listing as a JSON document.",
)
@click.pass_context
def disasm(
    ctx: click.Context,
    path: str,
    section: Optional[str],
    json_output: bool,
) -> None:
    """Disassemble the code section of PATH."""
    session = _open_session(ctx, path)
    elf = _require_header(ctx, session)
    section_name = section or ctx.obj["config"].disasm.code_section

    if json_output:
        try:
            lines = session.listing(section_name)
        except SectionTableError as exc:
            _fail(ctx, str(exc))
        reporter: ListingReportGenerator = ctx.obj["reporter"]
        if ctx.obj["output"]:
            report_path = reporter.generate_json(
                elf.summary(), lines, ctx.obj["output"], source=path
            )
            _saved(ctx, report_path)
        else:
            click.echo(json.dumps(
                reporter.build_json(elf.summary(), lines, source=path),
                indent=2,
                ensure_ascii=False,
                default=str,
            ))
        return

    count = session.disassemble(section_name)
    if count < 0:
        _report_diagnostics(ctx, session.sink)
    if count == 0:
        ctx.obj["console"].warning(f"{path}: no instructions in {section_name}")

    if ctx.obj["output"]:
        _save(ctx, session.sink.getvalue())
    else:
        ctx.obj["display"].display_listing(section_name, session.sink.lines())


@cli.command()
@click.argument("path", type=click.Path(dir_okay=False))
@click.option("--columns", type=click.IntRange(min=1), default=None,
              help="Bytes per row.  Default: [hexview] column_count.")
@click.option("--group", type=click.IntRange(min=1), default=None,
              help="Bytes per group.  Default: [hexview] group_count.")
@click.pass_context
def hexdump(
    ctx: click.Context,
    path: str,
    columns: Optional[int],
    group: Optional[int],
) -> None:
    """Hex dump of PATH."""
    session = _open_session(ctx, path)
    view = session.hex_view(
        columns, group, use_color=False if ctx.obj["no_color"] else None
    )

    if ctx.obj["output"]:
        view.dump(session.sink)
        _save(ctx, session.sink.getvalue())
    else:
        ctx.obj["display"].display_rows(view.rows())


@cli.command()
@click.argument("path", type=click.Path(dir_okay=False))
@click.argument("needle")
@click.option("--hex", "as_hex", is_flag=True, default=False,
              help="Treat NEEDLE as hex digits, e.g. 7f454c46.")
@click.pass_context
def search(ctx: click.Context, path: str, needle: str, as_hex: bool) -> None:
    """List every occurrence of NEEDLE in PATH."""
    if as_hex:
        try:
            pattern = bytes.fromhex(needle)
        except ValueError:
            _fail(ctx, f"invalid hex byte string: {needle!r}")
    else:
        pattern = needle.encode("utf-8")
    if not pattern:
        _fail(ctx, "search needle must not be empty")

    session = _open_session(ctx, path)
    view = session.hex_view(
        use_color=False if ctx.obj["no_color"] else None
    )

    if ctx.obj["output"]:
        count = session.list_occurrences(pattern)
        _save(ctx, session.sink.getvalue())
    else:
        count = len(view.find(pattern))
        ctx.obj["display"].display_rows(view.occurrence_lines(pattern))
    ctx.obj["console"].info(f"{count} occurrence(s) found")


# ===================================================================== #
#  Entry Point
# ===================================================================== #

def main() -> None:
    """Main entry point for the ElfLens CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()

"""Main CLI application with typer subcommands."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Annotated, Optional

import typer
from dotenv import load_dotenv
from rich.prompt import Confirm
from rich.table import Table

from karaoke_timer.utils.logging import setup_logging, Verbosity, console, info, success, warn, error
from karaoke_timer.utils.config import AppConfig, load_config, load_dictionary, merge_cli_overrides, DEFAULT_CONFIG_YAML

load_dotenv()

app = typer.Typer(
    name="karaoke-timer",
    help="Tap-timed syllable karaoke for ASS subtitles.",
    rich_markup_mode="rich",
    no_args_is_help=True,
)


# ── Enums ─────────────────────────────────────────────────────────────────────

class OutputFormat(str, Enum):
    new = "new"
    full = "full"


# ── Helper functions ──────────────────────────────────────────────────────────

def _verbosity(silent: bool, verbose: bool) -> Verbosity:
    if silent:
        return Verbosity.SILENT
    return Verbosity.VERBOSE if verbose else Verbosity.NORMAL


def _read_text(path: Path) -> str:
    if not path.is_file():
        error(f"Input not found: {path}")
        raise typer.Exit(1)
    return path.read_text(encoding="utf-8-sig").replace("\r", "")


def _read_lyrics(path: Path, ass: Optional[bool]) -> str:
    from karaoke_timer.export.ass_codec import strip_ass_header
    text = _read_text(path)
    if ass if ass is not None else path.suffix.lower() in (".ass", ".ssa"):
        text = strip_ass_header(text)
    return text


def _load_document(text: str):
    from karaoke_timer.export.ass_codec import AssFormatError
    from karaoke_timer.lyrics.model import LyricsDocument
    try:
        return LyricsDocument.from_text(text)
    except AssFormatError as e:
        error(str(e))
        raise typer.Exit(1)


def _write_output(text: str, output: Optional[Path]) -> None:
    if output is None:
        console.print(text, markup=False, highlight=False, emoji=False, soft_wrap=True)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text + "\n", encoding="utf-8")
    success(f"Written: {output}")


def _dictionary(cfg: AppConfig) -> list[str] | None:
    if not cfg.syllablize.dictionary_path:
        return None
    try:
        return load_dictionary(cfg.syllablize.dictionary_path)
    except (OSError, ValueError) as e:
        error(f"Cannot load syllable dictionary: {e}")
        raise typer.Exit(1)


# ── SYLLABLIZE ────────────────────────────────────────────────────────────────

@app.command()
def syllablize(
    input: Annotated[Path, typer.Option("--input", "-i", help="Lyrics text file")],
    output: Annotated[Optional[Path], typer.Option("--output", "-o")] = None,
    level: Annotated[Optional[int], typer.Option(min=0, max=2, help="0 off, 1 dictionary, 2 + vowels")] = None,
    config: Annotated[Optional[Path], typer.Option("--config")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v")] = False,
):
    """Propose syllable boundaries (``|``) for romanized lyrics."""
    setup_logging(_verbosity(output is None, verbose))
    from karaoke_timer.lyrics.syllablize import prepare_lyrics

    cfg = merge_cli_overrides(load_config(config), {"syllablize.level": level})
    text = prepare_lyrics(_read_text(input), cfg.syllablize.level, _dictionary(cfg))
    _write_output(text, output)


# ── STRIP ─────────────────────────────────────────────────────────────────────

@app.command()
def strip(
    input: Annotated[Path, typer.Option("--input", "-i", help="ASS subtitle file")],
    output: Annotated[Optional[Path], typer.Option("--output", "-o")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v")] = False,
):
    """Drop the ASS script header, keeping the event lines."""
    setup_logging(_verbosity(output is None, verbose))
    from karaoke_timer.export.ass_codec import strip_ass_header
    _write_output(strip_ass_header(_read_text(input)), output)


# ── ROWS ──────────────────────────────────────────────────────────────────────

@app.command()
def rows(
    input: Annotated[Path, typer.Option("--input", "-i", help="Lyrics text or ASS file")],
    ass: Annotated[Optional[bool], typer.Option("--ass/--no-ass", help="Strip ASS header (default: by suffix)")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v")] = False,
):
    """List the rows that would be timed."""
    setup_logging(_verbosity(False, verbose))
    doc = _load_document(_read_lyrics(input, ass))

    table = Table(title=f"{input.name}: {len(doc.rows)} rows")
    table.add_column("#", justify="right")
    table.add_column("Line", justify="right")
    table.add_column("Syllables", justify="right")
    table.add_column("Text")
    for row in doc.rows:
        tokens = doc.row_tokens(row)
        table.add_row(str(row.index), str(tokens[0].source_line), str(len(row)),
                      " ".join(t.syllable for t in tokens))
    console.print(table)


# ── REPLAY ────────────────────────────────────────────────────────────────────

@app.command()
def replay(
    input: Annotated[Path, typer.Option("--input", "-i", help="Lyrics text or ASS file")],
    events: Annotated[Path, typer.Option("--events", "-e", help="Recorded command log (JSON / JSON lines)")],
    output: Annotated[Optional[Path], typer.Option("--output", "-o")] = None,
    output_format: Annotated[Optional[OutputFormat], typer.Option("--format")] = None,
    style: Annotated[Optional[str], typer.Option(help="ASS style name")] = None,
    time_shift: Annotated[Optional[float], typer.Option(help="Seconds added to every time")] = None,
    ass: Annotated[Optional[bool], typer.Option("--ass/--no-ass", help="Strip ASS header (default: by suffix)")] = None,
    config: Annotated[Optional[Path], typer.Option("--config")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v")] = False,
):
    """Replay a tap log against lyrics and print the timed ASS lines."""
    setup_logging(_verbosity(output is None, verbose))
    from pydantic import ValidationError
    from karaoke_timer.export.ass_codec import render_timings
    from karaoke_timer.timing.host import ManualHost
    from karaoke_timer.timing.replay import load_events, replay as run_replay
    from karaoke_timer.timing.session import TimingSession

    cfg = merge_cli_overrides(load_config(config), {
        "export.output_format": output_format.value if output_format else None,
        "export.style": style,
        "export.time_shift": time_shift,
    })

    doc = _load_document(_read_lyrics(input, ass))
    if not events.is_file():
        error(f"Event log not found: {events}")
        raise typer.Exit(1)
    try:
        log = load_events(events)
    except ValidationError as e:
        error(f"Invalid event log: {e}")
        raise typer.Exit(1)

    host = ManualHost()
    session = TimingSession.from_config(host, cfg.timing, doc)
    try:
        result = run_replay(session, host, log)
    except IndexError as e:
        error(str(e))
        raise typer.Exit(1)

    for w in result.warnings:
        warn(w)
    info(f"Replayed {result.applied + result.rejected} events, {result.rejected} rejected; "
         f"{session.row_index}/{session.row_count} rows reached")

    _write_output(
        render_timings(doc, cfg.export.style, cfg.export.time_shift, cfg.export.output_format),
        output,
    )


# ── INIT CONFIG ───────────────────────────────────────────────────────────────

@app.command(name="init")
def init_config():
    """Generate a default config.yaml in the current directory."""
    setup_logging(Verbosity.NORMAL)
    p = Path("config.yaml")
    if p.exists():
        if not Confirm.ask("config.yaml exists. Overwrite?", default=False):
            raise typer.Exit(0)
    p.write_text(DEFAULT_CONFIG_YAML, encoding="utf-8")
    success(f"Created {p}")


# ── ENTRY POINT ───────────────────────────────────────────────────────────────

def app_entry():
    app()


if __name__ == "__main__":
    app_entry()

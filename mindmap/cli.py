"""CLI entrypoints for the mind map."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Optional

import typer

from mindmap.config import load_settings
from mindmap.diagram import Diagram
from mindmap.export import default_export_name, export_png
from mindmap.logging import configure_logging, get_logger
from mindmap.organizer import ORGANIZE_MODES, organize
from mindmap.palettes import COLOR_PALETTES, THEMES, get_palette, get_theme

app = typer.Typer(add_completion=False, help="Outline text to interactive mind map")
logger = get_logger(__name__)

COMMANDS = ("open", "organize", "export")


def _read_outline(path: Path) -> Optional[str]:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        logger.error("Cannot read %s: %s", path, exc)
        return None


@app.callback()
def _configure(
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Logging level (overrides MINDMAP_LOG_LEVEL)",
    ),
) -> None:
    configure_logging(log_level or load_settings().log_level)


@app.command("open")
def open_editor(file: Optional[Path] = typer.Argument(None, help="Outline file to open")) -> None:
    """Open the interactive editor."""

    # tkinter is only needed for the interactive shell
    from mindmap.app import run

    run(file)


@app.command("organize")
def organize_file(
    file: Path = typer.Argument(..., help="Outline file"),
    mode: str = typer.Option("smart", "--mode", help="smart, az or za"),
) -> None:
    """Print the outline cleaned up or sorted."""

    if mode not in ORGANIZE_MODES:
        raise typer.BadParameter(f"--mode must be one of {', '.join(ORGANIZE_MODES)}")
    text = _read_outline(file)
    if text is None:
        raise typer.Exit(code=1)
    typer.echo(organize(text, mode))


@app.command("export")
def export_file(
    file: Path = typer.Argument(..., help="Outline file"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="PNG file to write"),
    palette: Optional[str] = typer.Option(None, "--palette", help=f"One of: {', '.join(COLOR_PALETTES)}"),
    theme: Optional[str] = typer.Option(None, "--theme", help=f"One of: {', '.join(THEMES)}"),
) -> None:
    """Render the outline to a PNG image."""

    text = _read_outline(file)
    if text is None:
        raise typer.Exit(code=1)
    settings = load_settings()
    chosen_theme = get_theme(theme or settings.theme)
    chosen_palette = get_palette(palette or settings.palette)

    diagram = Diagram(palette=chosen_palette.colors, theme=chosen_theme, transition_ms=0)
    diagram.set_text(text)
    target = output or settings.export_dir / default_export_name()
    written = export_png(diagram.frame, chosen_theme, target, diagram.pins)
    if written is None:
        raise typer.Exit(code=1)
    typer.echo(str(written))


def _with_default_command(argv: List[str]) -> List[str]:
    """`mindmap [FILE]` is shorthand for `mindmap open [FILE]`."""
    i = 0
    while i < len(argv) and argv[i].startswith("-"):
        i += 2 if argv[i] == "--log-level" else 1
    if i < len(argv) and argv[i] in COMMANDS:
        return argv
    if any(arg in ("-h", "--help") for arg in argv):
        return argv
    return argv[:i] + ["open"] + argv[i:]


def main(argv: Optional[List[str]] = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    try:
        app(args=_with_default_command(argv), prog_name="mindmap")
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else 0
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

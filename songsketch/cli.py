"""Command-line interface for Song Sketch.

Provides commands for:
- analyze: Detect the key of a hummed melody and suggest chord progressions
- selftest: Run the built-in reference melodies
- info: Show audio file information
"""

import typer
from pathlib import Path
from typing import Optional
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="songsketch",
    help="Hummed melody to key and chord suggestions",
    rich_markup_mode="markdown",
)
console = Console()


@app.command()
def analyze(
    input_file: Path = typer.Argument(..., help="Input audio file (WAV, FLAC, OGG, MP3)"),
    window_size: int = typer.Option(
        2048, "-w", "--window-size", help="Samples per pitch window (hop is half)"
    ),
    min_volume: float = typer.Option(
        0.005, "--min-volume", help="RMS floor below which a window is silent"
    ),
    min_confidence: float = typer.Option(
        0.6, "--min-confidence", help="Minimum periodicity strength (0-1)"
    ),
    smoothing: float = typer.Option(
        0.8, "-s", "--smoothing", help="Frequency smoothing factor (0 = off)"
    ),
    top: int = typer.Option(
        3, "-n", "--top", help="Number of progressions to show"
    ),
    fallback: bool = typer.Option(
        False, "--fallback", help="Suggest a basic I-IV-V-I when no template fits"
    ),
    midi: Optional[Path] = typer.Option(
        None, "--midi", help="Write the best progression (and melody) to this MIDI file"
    ),
    json_output: bool = typer.Option(
        False, "--json", help="Output results as JSON (for scripting)"
    ),
    verbose: bool = typer.Option(
        False, "-v", "--verbose", help="Verbose output"
    ),
):
    """Detect the key of a melody and suggest chord progressions."""
    from .core import setup_logging
    from .input import AudioLoader
    from .analysis import PitchDetectionConfig
    from .pipeline import AnalysisConfig, MelodyAnalyzer

    if verbose:
        setup_logging("DEBUG")

    if not input_file.exists():
        console.print(f"[red]Error: File not found: {input_file}[/red]")
        raise typer.Exit(1)

    try:
        config = AnalysisConfig(
            pitch=PitchDetectionConfig(
                min_volume=min_volume,
                min_confidence=min_confidence,
                window_size=window_size,
                smoothing=smoothing,
            ),
            max_suggestions=top,
            use_fallback=fallback,
        )
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    loader = AudioLoader()
    try:
        audio, sr = loader.load(str(input_file))
    except (ValueError, RuntimeError) as e:
        console.print(f"[red]Error: Could not decode {input_file.name}: {e}[/red]")
        raise typer.Exit(1)

    if not json_output:
        console.print(f"\n[bold blue]Melody Analysis: {input_file.name}[/bold blue]\n")
        console.print(f"   Duration: {loader.get_duration(audio, sr):.2f}s, Sample rate: {sr}Hz")

    result = MelodyAnalyzer(config).analyze(audio, sr)

    if midi is not None:
        if result.best is None:
            if not json_output:
                console.print("[yellow]No progression to export, skipping MIDI[/yellow]")
        else:
            from .output import ProgressionMIDIExporter

            ProgressionMIDIExporter().export(result.best, str(midi), melody=result.notes)
            if not json_output:
                console.print(f"[blue]Exported MIDI:[/blue] {midi}")

    if json_output:
        console.print_json(data=result.to_dict())
        return

    console.print(f"   Pitch points: {result.pitch_point_count}, notes: {len(result.notes)}")
    if verbose and result.notes:
        _show_notes_table(result.notes)

    if result.key.is_unknown:
        console.print("\n[yellow]No melody detected - key Unknown[/yellow]")
        return

    console.print(f"\n   [green]Key: {result.detected_key}[/green]")
    console.print(f"   Correlation: {result.key.confidence:.2f}")
    if verbose and result.key.alternatives:
        others = ", ".join(
            f"{c.name} ({c.correlation:.2f})" for c in result.key.alternatives
        )
        console.print(f"   [dim]Alternatives: {others}[/dim]")

    if result.suggestions:
        _show_suggestions_table(result.suggestions)
    else:
        console.print("\n[yellow]Melody too short to harmonize - no progressions[/yellow]")

    if verbose:
        console.print("\n[bold]Timing Summary:[/bold]")
        for stage, seconds in result.timings.items():
            console.print(f"  {stage}: {seconds:.3f}s")


@app.command()
def selftest(
    verbose: bool = typer.Option(
        False, "-v", "--verbose", help="Verbose output"
    ),
):
    """Run the built-in reference melodies and report the results."""
    from .core import setup_logging
    from .evaluation import run_cases

    if verbose:
        setup_logging("DEBUG")

    outcomes = run_cases()

    table = Table(title="Reference Melodies")
    table.add_column("Melody", style="cyan")
    table.add_column("Expected", style="green")
    table.add_column("Detected", style="yellow")
    table.add_column("Best Progression", style="magenta")
    table.add_column("Result")

    for outcome in outcomes:
        best = outcome.result.best
        table.add_row(
            outcome.case.name,
            outcome.case.expected_key,
            outcome.result.detected_key,
            " - ".join(best.symbols) if best else "-",
            "[green]PASS[/green]" if outcome.passed else "[red]FAIL[/red]",
        )

    console.print(table)

    failed = [o for o in outcomes if not o.passed]
    if failed:
        console.print(f"[red]{len(failed)} of {len(outcomes)} melodies failed[/red]")
        raise typer.Exit(1)
    console.print(f"[green][OK] All {len(outcomes)} melodies passed[/green]")


@app.command()
def info(
    input_file: Path = typer.Argument(..., help="Input audio file"),
):
    """Show information about an audio file."""
    from .input import AudioLoader

    if not input_file.exists():
        console.print(f"[red]Error: File not found: {input_file}[/red]")
        raise typer.Exit(1)

    loader = AudioLoader()
    try:
        audio, sr = loader.load(str(input_file))
    except (ValueError, RuntimeError) as e:
        console.print(f"[red]Error: Could not decode {input_file.name}: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"\n[bold]Audio Info:[/bold] {input_file.name}")
    console.print(f"  Duration: {loader.get_duration(audio, sr):.2f} seconds")
    console.print(f"  Sample rate: {sr} Hz")
    console.print(f"  Samples: {len(audio):,}")


def _show_notes_table(notes):
    """Display notes in a table."""
    table = Table(title="Detected Notes")
    table.add_column("Note", style="cyan")
    table.add_column("Start (ms)", style="green")
    table.add_column("Duration (ms)", style="yellow")

    for note in notes:
        table.add_row(note.name, str(note.start_ms), str(note.duration_ms))

    console.print(table)


def _show_suggestions_table(suggestions):
    """Display suggested progressions in a table."""
    table = Table(title="Suggested Progressions")
    table.add_column("#", style="dim")
    table.add_column("Progression", style="cyan")
    table.add_column("Chords", style="green")
    table.add_column("Score", style="magenta")

    for rank, progression in enumerate(suggestions, 1):
        table.add_row(
            str(rank),
            progression.name,
            " - ".join(progression.symbols),
            f"{progression.score:.2f}",
        )

    console.print(table)


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()

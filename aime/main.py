"""
Main CLI interface for AIME.

This module provides the Typer-based command-line interface with commands for:
- Question answering over a transcript or notes
- Summaries, action items and timelines
- Audio file and live microphone transcription
- Model and microphone availability checks
"""

import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Optional

import pyperclip
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .core.action_items import ActionItemsExtractor
from .core.answer import QuestionAnswerer
from .core.availability import AudioHelpers, ModelAvailability
from .core.config import config, validate_config
from .core.errors import AIMEError
from .core.speech import SUPPORTED_EXTENSIONS, SpeechProcessor
from .core.summarize import Summarizer, SummaryStyle
from .core.timeline import TimelineExtractor
from .core.tokens import token_tracker
from .core.transcriber import Transcriber

app = typer.Typer(
    name="aime",
    help="AIME CLI - Answers, summaries, action items and timelines from meeting transcripts",
    no_args_is_help=True,
)

console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show AIME log messages"),
    debug: bool = typer.Option(False, "--debug", help="Write JSON debug records of model calls under .aime/debug"),
):
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )
    if debug:
        os.environ["AIME_DEBUG"] = "1"


def _read_input(text: Optional[str], file: Optional[str]) -> str:
    """Resolve the --text / --file pair into the input text."""
    if text and file:
        console.print("[bold red]Error:[/bold red] Cannot specify both --text and --file options")
        sys.exit(1)

    if not text and not file:
        console.print("[bold red]Error:[/bold red] Must specify either --text or --file option")
        sys.exit(1)

    if file:
        file_path = Path(file)
        if not file_path.exists():
            console.print(f"[bold red]Error:[/bold red] File not found: {file}")
            sys.exit(1)
        try:
            return file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            console.print(f"[bold red]Error:[/bold red] Failed to read file '{file}': {e}")
            sys.exit(1)

    return text


def _fail(error: Exception) -> None:
    """Print an error and exit with status 1."""
    if isinstance(error, AIMEError):
        console.print(f"[bold red]Error:[/bold red] {error.description}")
        if error.recovery_suggestion:
            console.print(f"[dim]{error.recovery_suggestion}[/dim]")
    else:
        console.print(f"[bold red]Unexpected Error:[/bold red] {error}")
    sys.exit(1)


def _copy(text: str) -> None:
    try:
        pyperclip.copy(text)
        console.print("[dim]Copied to clipboard[/dim]")
    except pyperclip.PyperclipException as e:
        console.print(f"[yellow]Clipboard unavailable:[/yellow] {e}")


def _print_token_usage() -> None:
    usage = token_tracker.get_total_usage()
    if not usage.total_tokens:
        return
    table = Table(show_header=False, box=None)
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Input tokens (est.)", str(usage.input_tokens))
    table.add_row("Output tokens (est.)", str(usage.output_tokens))
    table.add_row("Total tokens (est.)", str(usage.total_tokens))
    console.print("\n[bold blue]Token Usage:[/bold blue]")
    console.print(table)


async def _stream_text(stream) -> str:
    """Print streamed snapshots as they grow and return the last one."""
    last = ""
    async for snapshot in stream:
        console.print(snapshot[len(last) :] if snapshot.startswith(last) else f"\n{snapshot}", end="", markup=False)
        last = snapshot
    console.print()
    return last


@app.command()
def ask(
    question: str = typer.Argument(..., help="Question to answer"),
    text: Optional[str] = typer.Option(None, "--text", "-t", help="Context text"),
    file: Optional[str] = typer.Option(None, "--file", help="Path to file containing the context"),
    citation: bool = typer.Option(True, "--citation/--no-citation", help="Append the supporting quote"),
    stream: bool = typer.Option(False, "--stream", help="Print the answer while it is generated"),
    copy: bool = typer.Option(False, "--copy", help="Copy the answer to the clipboard"),
):
    """
    Answer a question using only the given context.

    Examples:
        aime ask "Who owns the release?" --file meeting.txt
        aime ask "When is the demo?" --text "The demo moved to Friday." --stream
    """
    context = _read_input(text, file)
    try:
        validate_config()
        answerer = QuestionAnswerer()
        if stream:
            answer = asyncio.run(_stream_text(answerer.ask_streaming(question, context, include_citation=citation)))
        else:
            with console.status("[dim]Generating answer…[/dim]"):
                answer = asyncio.run(answerer.ask(question, context, include_citation=citation))
            console.print(Panel(answer, title="Answer", border_style="green"))
    except Exception as e:
        _fail(e)

    if copy:
        _copy(answer)
    _print_token_usage()


@app.command()
def summarize(
    text: Optional[str] = typer.Option(None, "--text", "-t", help="Text to summarize"),
    file: Optional[str] = typer.Option(None, "--file", help="Path to file containing the text"),
    style: SummaryStyle = typer.Option(SummaryStyle.STANDARD, "--style", "-s", help="Summary style"),
    max_length: Optional[int] = typer.Option(None, "--max-length", "-m", min=1, help="Maximum summary length in characters"),
    stream: bool = typer.Option(False, "--stream", help="Print the summary while it is generated"),
    copy: bool = typer.Option(False, "--copy", help="Copy the summary to the clipboard"),
):
    """
    Summarize a transcript or document.

    Examples:
        aime summarize --file meeting.txt --style bullet_points
        aime summarize --text "..." --max-length 280 --copy
    """
    source = _read_input(text, file)
    try:
        validate_config()
        summarizer = Summarizer()
        if stream:
            summary = asyncio.run(_stream_text(summarizer.generate_streaming(source, max_length=max_length, style=style)))
        else:
            with console.status("[dim]Generating summary…[/dim]"):
                summary = asyncio.run(summarizer.generate(source, max_length=max_length, style=style))
            console.print(Panel(summary, title=f"Summary ({style.value})", border_style="green"))
    except Exception as e:
        _fail(e)

    if copy:
        _copy(summary)
    _print_token_usage()


@app.command()
def actions(
    text: Optional[str] = typer.Option(None, "--text", "-t", help="Transcript text"),
    file: Optional[str] = typer.Option(None, "--file", help="Path to file containing the transcript"),
    max_items: int = typer.Option(10, "--max", "-m", min=1, help="Maximum number of action items"),
    priority: bool = typer.Option(True, "--priority/--no-priority", help="Include priorities"),
    owner: bool = typer.Option(True, "--owner/--no-owner", help="Include owners"),
    due_date: bool = typer.Option(True, "--due-date/--no-due-date", help="Include due dates"),
    output_format: str = typer.Option("rich", "--format", "-f", help="Output format (rich, json)"),
    copy: bool = typer.Option(False, "--copy", help="Copy the action items to the clipboard"),
):
    """
    Extract action items from a meeting transcript.

    Examples:
        aime actions --file meeting.txt --max 5
        aime actions --file meeting.txt --format json --copy
    """
    source = _read_input(text, file)
    try:
        validate_config()
        with console.status("[dim]Extracting action items…[/dim]"):
            items = asyncio.run(
                ActionItemsExtractor().extract(
                    source, max_items=max_items, include_priority=priority, include_owner=owner, include_due_date=due_date
                )
            )
    except Exception as e:
        _fail(e)

    if output_format == "json":
        rendered = json.dumps([item.model_dump(mode="json") for item in items], indent=2)
        console.print(rendered)
    else:
        if not items:
            console.print("[yellow]No action items found[/yellow]")
        else:
            table = Table(title="Action Items")
            table.add_column("#", style="dim")
            table.add_column("Action", style="white")
            table.add_column("Priority", style="magenta")
            table.add_column("Owner", style="cyan")
            table.add_column("Due", style="green")
            for item in items:
                table.add_row(
                    str(item.index + 1),
                    item.title,
                    item.priority.label if item.priority else "",
                    item.owner or "",
                    item.due_date.date().isoformat() if item.due_date else "",
                )
            console.print(table)
        rendered = "\n".join(f"- {item.title}" + (f" ({item.owner})" if item.owner else "") for item in items)

    if copy:
        _copy(rendered)
    _print_token_usage()


@app.command()
def timeline(
    text: Optional[str] = typer.Option(None, "--text", "-t", help="Transcript text"),
    file: Optional[str] = typer.Option(None, "--file", help="Path to file containing the transcript"),
    output_format: str = typer.Option("rich", "--format", "-f", help="Output format (rich, json)"),
    copy: bool = typer.Option(False, "--copy", help="Copy the timeline to the clipboard"),
):
    """
    Extract a project timeline from meeting transcripts.

    Examples:
        aime timeline --file standup.txt
        aime timeline --file standup.txt --format json
    """
    source = _read_input(text, file)
    try:
        validate_config()
        with console.status("[dim]Extracting timeline…[/dim]"):
            result = asyncio.run(TimelineExtractor().extract(source))
    except Exception as e:
        _fail(e)

    if output_format == "json":
        rendered = result.model_dump_json(indent=2)
        console.print(rendered)
    else:
        if not result.items:
            console.print("[yellow]No timeline items found[/yellow]")
        else:
            table = Table(title="Timeline")
            table.add_column("Date", style="green")
            table.add_column("Item", style="white")
            table.add_column("Owner", style="cyan")
            table.add_column("Status", style="yellow")
            table.add_column("Priority", style="magenta")
            for item in result.items:
                table.add_row(item.date, item.title, item.owner or "", item.status or "", item.priority.label if item.priority else "")
            console.print(table)
        if result.extraction_notes:
            console.print("\n[yellow]Extraction Notes:[/yellow]")
            console.print(f"  • {result.extraction_notes}")
        rendered = "\n".join(f"{item.date}: {item.title}" for item in result.items)

    if copy:
        _copy(rendered)
    _print_token_usage()


async def _record_live(transcriber: Transcriber, language: Optional[str], duration: Optional[float]) -> str:

    def on_update(transcript: str) -> None:
        console.print(f"[dim]…[/dim] {transcript[-120:]}")

    def on_error(error: AIMEError) -> None:
        console.print(f"[yellow]Warning:[/yellow] {error.description}")

    await transcriber.start_recording(language=language, on_transcript_update=on_update, on_error=on_error)
    console.print("[bold green]Recording…[/bold green] [dim]press Ctrl+C to stop[/dim]")
    try:
        if duration:
            await asyncio.sleep(duration)
        else:
            await asyncio.Event().wait()
    finally:
        transcript = await transcriber.stop_recording()
        if transcriber.audio_file_path:
            console.print(f"[dim]Audio saved to {transcriber.audio_file_path}[/dim]")
    return transcript or ""


@app.command()
def transcribe(
    path: Optional[str] = typer.Argument(None, help="Audio file to transcribe; omit with --live"),
    live: bool = typer.Option(False, "--live", help="Record from the microphone"),
    duration: Optional[float] = typer.Option(None, "--duration", "-d", min=1, help="Stop live recording after this many seconds"),
    language: Optional[str] = typer.Option(None, "--language", "-l", help="ISO-639-1 language code"),
    copy: bool = typer.Option(False, "--copy", help="Copy the transcript to the clipboard"),
):
    """
    Transcribe an audio file or a live microphone recording.

    Examples:
        aime transcribe meeting.m4a
        aime transcribe --live --duration 60 --language en --copy
    """
    if live == bool(path):
        console.print("[bold red]Error:[/bold red] Specify either an audio file or --live")
        sys.exit(1)

    try:
        validate_config()
        if live:
            transcriber = Transcriber()
            try:
                transcript = asyncio.run(_record_live(transcriber, language, duration))
            except KeyboardInterrupt:
                console.print("\n[dim]Recording stopped by user[/dim]")
                transcript = transcriber.finalized_transcript
        else:
            processor = SpeechProcessor(language=language)
            if not processor.validate_audio_format(path):
                console.print(f"[bold red]Error:[/bold red] Unsupported audio format: {Path(path).suffix}")
                console.print(f"Supported formats: {', '.join(sorted(SUPPORTED_EXTENSIONS))}")
                sys.exit(1)
            audio_info = processor.get_audio_info(path)
            console.print(f"[dim]Processing: {audio_info['name']} ({audio_info['size_mb']} MB)[/dim]")
            with console.status("[dim]Transcribing…[/dim]"):
                transcript = asyncio.run(processor.transcribe_audio(path)).text
    except (AIMEError, FileNotFoundError) as e:
        _fail(e)

    console.print(f"[dim]Transcript ({len(transcript.split())} words):[/dim]")
    console.print(Panel(transcript or "[dim](empty)[/dim]", border_style="green"))
    if copy:
        _copy(transcript)


async def _check_models(model: Optional[str]):
    availability = ModelAvailability()
    return await availability.unavailability_reason(model), await availability.is_transcription_model_installed()


@app.command()
def check(
    model: Optional[str] = typer.Option(None, "--model", help="Model to check; defaults to LLM_MODEL"),
):
    """
    Check model and microphone availability.

    Examples:
        aime check
        aime check --model llama3.1
    """
    try:
        validate_config()
        with console.status("[dim]Checking models…[/dim]"):
            reason, transcription_ready = asyncio.run(_check_models(model))
    except AIMEError as e:
        _fail(e)

    table = Table(title="Availability")
    table.add_column("Component", style="cyan")
    table.add_column("Status", style="white")
    table.add_row(f"Language model ({model or config.llm_model})", "[green]available[/green]" if reason is None else f"[red]{reason}[/red]")
    table.add_row(f"Transcription model ({config.asr_model})", "[green]available[/green]" if transcription_ready else "[red]unavailable[/red]")
    table.add_row("Microphone", "[green]available[/green]" if AudioHelpers.check_microphone_permission() else "[red]unavailable[/red]")
    console.print(table)


if __name__ == "__main__":
    app()

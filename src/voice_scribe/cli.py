"""Command-line interface for voice-scribe.

Uses Typer for a type-hinted CLI and Rich for output.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

# Priority: local .env > ~/.voice-scribe/.env
_user_env = Path.home() / ".voice-scribe" / ".env"
if _user_env.exists():
    load_dotenv(_user_env)
load_dotenv()

from voice_scribe import __version__
from voice_scribe.config import AppConfig, load_config
from voice_scribe.errors import VoiceScribeError, format_error_for_display
from voice_scribe.llm import DEFAULT_GRAMMAR_PROMPT, LLMConfig, OpenAIGrammarCorrector
from voice_scribe.logging import LogLevel, enable_file_logging, set_verbosity
from voice_scribe.pipeline import (
    CorrectionResult,
    apply_user_transformations,
    process_text,
    transcribe_and_correct,
)
from voice_scribe.storage import UserDataStore
from voice_scribe.transcription import WhisperAPIProvider
from voice_scribe.vocabulary import FuzzyMatch, VocabularySuggester, split_tokens

app = typer.Typer(
    name="voice-scribe",
    help="Dictation cleanup: grammar correction plus your personal vocabulary.",
    add_completion=False,
    rich_markup_mode="rich",
)
vocab_app = typer.Typer(help="Manage your word corrections.")
prompt_app = typer.Typer(help="Manage your grammar-correction prompt.")
app.add_typer(vocab_app, name="vocab")
app.add_typer(prompt_app, name="prompt")

console = Console()

UserOption = Annotated[str, typer.Option("--user", "-u", help="User id whose data to use")]
JsonOption = Annotated[bool, typer.Option("--json", help="Print machine-readable JSON")]


@dataclass
class CLIState:
    """Objects shared by all commands."""

    config: AppConfig
    store: UserDataStore


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"voice-scribe version {__version__}")
        raise typer.Exit()


def _fail(error: Exception) -> None:
    console.print(f"[red]Error:[/red] {escape(format_error_for_display(error))}", highlight=False)
    raise typer.Exit(1)


def _state(ctx: typer.Context) -> CLIState:
    return ctx.obj


def _grammar_provider(config: AppConfig) -> OpenAIGrammarCorrector:
    settings = config.grammar
    return OpenAIGrammarCorrector(LLMConfig(
        model=settings.model,
        temperature=settings.temperature,
        timeout=settings.timeout_seconds,
    ))


def render_highlighted(text: str, fuzzy_matches: dict[str, FuzzyMatch]) -> Text:
    """Render text with fuzzy-corrected words highlighted."""
    rendered = Text()
    for piece, is_word in split_tokens(text):
        if is_word and piece in fuzzy_matches:
            rendered.append(piece, style="bold yellow underline")
        else:
            rendered.append(piece)
    return rendered


def _print_fuzzy_table(fuzzy_matches: dict[str, FuzzyMatch], uid: str) -> None:
    if not fuzzy_matches:
        return

    table = Table(title="Fuzzy corrections")
    table.add_column("#", justify="right")
    table.add_column("Original")
    table.add_column("Corrected", style="yellow")
    table.add_column("Matched key")
    table.add_column("Score", justify="right")

    for match in sorted(fuzzy_matches.values(), key=lambda m: m.position):
        table.add_row(
            str(match.position),
            escape(match.original_word),
            escape(match.corrected_word),
            escape(match.matched_key),
            f"{match.score:.2f}",
        )

    console.print(table)
    console.print(
        "[dim]Undo a correction with:[/dim] "
        f"voice-scribe discard <original> <matched key> --user {uid}",
        highlight=False,
    )


def _print_result(result: CorrectionResult, uid: str, as_json: bool) -> None:
    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return

    console.print(render_highlighted(result.corrected_text, result.fuzzy_matches))
    _print_fuzzy_table(result.fuzzy_matches, uid)


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", help="Config file (default ~/.voice-scribe/config.json)"),
    ] = None,
    data_dir: Annotated[
        Optional[Path],
        typer.Option("--data-dir", help="Directory holding user data"),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show progress logs")] = False,
    debug: Annotated[bool, typer.Option("--debug", help="Show debug logs")] = False,
    log_file: Annotated[
        Optional[Path],
        typer.Option("--log-file", help="Also write all logs to this file"),
    ] = None,
    version: Annotated[
        Optional[bool],
        typer.Option("--version", callback=version_callback, is_eager=True, help="Show version"),
    ] = None,
) -> None:
    """Dictation cleanup: grammar correction plus your personal vocabulary."""
    if debug:
        set_verbosity(LogLevel.DEBUG)
    elif verbose:
        set_verbosity(LogLevel.VERBOSE)
    if log_file:
        enable_file_logging(log_file)

    try:
        config = load_config(config_path)
    except VoiceScribeError as e:
        _fail(e)

    root = data_dir or config.get_data_dir()
    ctx.obj = CLIState(config=config, store=UserDataStore(root))


@app.command()
def transform(
    ctx: typer.Context,
    text: Annotated[str, typer.Argument(help="Text to rewrite")],
    user: UserOption = "default",
    as_json: JsonOption = False,
) -> None:
    """Apply your word corrections to TEXT (no grammar correction)."""
    state = _state(ctx)
    try:
        transformations = state.store.get_transformations(user)
        discarded = state.store.get_discarded_fuzzy(user)
    except VoiceScribeError as e:
        _fail(e)

    transformed = apply_user_transformations(
        text,
        transformations,
        discarded,
        settings=state.config.matching,
    )
    result = CorrectionResult(
        original_text=text,
        corrected_text=transformed.transformed_text,
        fuzzy_matches=transformed.fuzzy_matches,
    )
    _print_result(result, user, as_json)


@app.command()
def correct(
    ctx: typer.Context,
    text: Annotated[str, typer.Argument(help="Text to correct")],
    user: UserOption = "default",
    no_grammar: Annotated[bool, typer.Option("--no-grammar", help="Skip grammar correction")] = False,
    as_json: JsonOption = False,
) -> None:
    """Grammar-correct TEXT, then apply your word corrections."""
    state = _state(ctx)
    try:
        result = process_text(
            text,
            grammar=None if no_grammar else _grammar_provider(state.config),
            grammar_settings=state.config.grammar,
            matching_settings=state.config.matching,
            prompt=state.store.get_prompt(user),
            transformations=state.store.get_transformations(user),
            discarded_fuzzy=state.store.get_discarded_fuzzy(user),
        )
    except VoiceScribeError as e:
        _fail(e)

    _print_result(result, user, as_json)


@app.command()
def transcribe(
    ctx: typer.Context,
    audio: Annotated[Path, typer.Argument(help="Recording to transcribe")],
    user: UserOption = "default",
    mime_type: Annotated[
        Optional[str],
        typer.Option("--mime-type", help="Declared type, e.g. audio/webm;codecs=opus"),
    ] = None,
    no_grammar: Annotated[bool, typer.Option("--no-grammar", help="Skip grammar correction")] = False,
    as_json: JsonOption = False,
) -> None:
    """Transcribe AUDIO with Whisper, then correct the transcript."""
    state = _state(ctx)
    try:
        result = transcribe_and_correct(
            audio,
            transcriber=WhisperAPIProvider(state.config.transcription),
            grammar=None if no_grammar else _grammar_provider(state.config),
            grammar_settings=state.config.grammar,
            matching_settings=state.config.matching,
            prompt=state.store.get_prompt(user),
            transformations=state.store.get_transformations(user),
            discarded_fuzzy=state.store.get_discarded_fuzzy(user),
            mime_type=mime_type,
        )
    except VoiceScribeError as e:
        _fail(e)

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return

    console.print(f"[dim]Transcript:[/dim] {escape(result.transcript)}", highlight=False)
    _print_result(result.correction, user, as_json=False)


@app.command()
def discard(
    ctx: typer.Context,
    original: Annotated[str, typer.Argument(help="Word as it appeared before correction")],
    matched_key: Annotated[str, typer.Argument(help="Dictionary key it was matched against")],
    user: UserOption = "default",
) -> None:
    """Undo a fuzzy correction so it is not suggested again."""
    state = _state(ctx)
    try:
        state.store.add_discarded_fuzzy(user, {original: matched_key})
    except VoiceScribeError as e:
        _fail(e)

    console.print(
        f"[green]Discarded:[/green] '{escape(original.lower())}' will no longer match '{escape(matched_key.lower())}'",
        highlight=False,
    )


@app.command()
def suggest(
    ctx: typer.Context,
    word: Annotated[str, typer.Argument(help="Word to find suggestions for")],
    vocab: Annotated[Path, typer.Option("--vocab", help="JSON list of known words")],
    limit: Annotated[Optional[int], typer.Option("--limit", "-n", help="Maximum suggestions")] = None,
    as_json: JsonOption = False,
) -> None:
    """Suggest spellings for WORD from a vocabulary list."""
    settings = _state(ctx).config.matching
    try:
        suggester = VocabularySuggester.from_file(vocab, threshold=settings.suggestion_threshold)
    except VoiceScribeError as e:
        _fail(e)

    suggestions = suggester.suggest(word, limit=limit or settings.suggestion_limit)

    if as_json:
        typer.echo(json.dumps({"suggestions": [s.to_dict() for s in suggestions]}, indent=2))
        return

    if not suggestions:
        console.print(f"No suggestions for '{word}'", markup=False, highlight=False)
        return

    for s in suggestions:
        console.print(f"  {escape(s.word)} [dim]({s.score:.2f})[/dim]", highlight=False)


@vocab_app.command("add")
def vocab_add(
    ctx: typer.Context,
    wrong: Annotated[str, typer.Argument(help="Word as it gets transcribed")],
    right: Annotated[str, typer.Argument(help="What it should be")],
    user: UserOption = "default",
) -> None:
    """Add or replace a word correction."""
    try:
        _state(ctx).store.add_transformation(user, wrong, right)
    except VoiceScribeError as e:
        _fail(e)
    console.print(f"[green]Added:[/green] {escape(wrong)} -> {escape(right)}", highlight=False)


@vocab_app.command("remove")
def vocab_remove(
    ctx: typer.Context,
    wrong: Annotated[str, typer.Argument(help="Word to stop correcting")],
    user: UserOption = "default",
) -> None:
    """Remove a word correction."""
    try:
        removed = _state(ctx).store.remove_transformation(user, wrong)
    except VoiceScribeError as e:
        _fail(e)

    if not removed:
        console.print(f"[yellow]No correction for '{escape(wrong)}'[/yellow]", highlight=False)
        raise typer.Exit(1)
    console.print(f"[green]Removed:[/green] {escape(wrong)}", highlight=False)


@vocab_app.command("list")
def vocab_list(
    ctx: typer.Context,
    user: UserOption = "default",
    as_json: JsonOption = False,
) -> None:
    """List word corrections and discarded fuzzy matches."""
    store = _state(ctx).store
    try:
        transformations = store.get_transformations(user)
        discarded = store.get_discarded_fuzzy(user)
    except VoiceScribeError as e:
        _fail(e)

    if as_json:
        typer.echo(json.dumps(
            {"transformations": transformations, "discarded_fuzzy": discarded},
            indent=2,
            ensure_ascii=False,
        ))
        return

    if not transformations:
        console.print("No word corrections yet. Add one with: voice-scribe vocab add WRONG RIGHT")
    else:
        table = Table(title=f"Word corrections ({len(transformations)})")
        table.add_column("Heard")
        table.add_column("Write as", style="green")
        for wrong, right in sorted(transformations.items(), key=lambda kv: kv[0].lower()):
            table.add_row(escape(wrong), escape(right))
        console.print(table)

    if discarded:
        table = Table(title=f"Discarded fuzzy matches ({len(discarded)})")
        table.add_column("Word")
        table.add_column("Not matched to", style="red")
        for original, key in sorted(discarded.items()):
            table.add_row(escape(original), escape(key))
        console.print(table)


@prompt_app.command("show")
def prompt_show(ctx: typer.Context, user: UserOption = "default") -> None:
    """Show the grammar-correction prompt in use."""
    state = _state(ctx)
    try:
        prompt = state.store.get_prompt(user)
    except VoiceScribeError as e:
        _fail(e)

    if prompt:
        console.print(prompt, markup=False, highlight=False)
    else:
        default = state.config.grammar.prompt or DEFAULT_GRAMMAR_PROMPT
        console.print(f"[dim](default)[/dim] {escape(default)}", highlight=False)


@prompt_app.command("set")
def prompt_set(
    ctx: typer.Context,
    prompt: Annotated[str, typer.Argument(help="Instruction for the grammar model")],
    user: UserOption = "default",
) -> None:
    """Set your grammar-correction prompt."""
    try:
        _state(ctx).store.set_prompt(user, prompt)
    except VoiceScribeError as e:
        _fail(e)
    console.print("[green]Prompt saved.[/green]")


@prompt_app.command("clear")
def prompt_clear(ctx: typer.Context, user: UserOption = "default") -> None:
    """Go back to the default grammar-correction prompt."""
    try:
        _state(ctx).store.set_prompt(user, None)
    except VoiceScribeError as e:
        _fail(e)
    console.print("[green]Prompt cleared.[/green]")


if __name__ == "__main__":
    app()

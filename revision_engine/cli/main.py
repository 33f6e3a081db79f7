"""
Revise CLI - spaced revision and mastery tracking from the terminal.

Usage:
    revise topics syllabus.json            # Topics and syllabus progress
    revise stats --user u1                 # Accuracy, focus time, streak
    revise weak --user u1 -s syllabus.json # Weak topics by priority
    revise session --user u1 -s syllabus.json --minutes 20
    revise rapid KEY --user u1 -s syllabus.json
    revise mark KEY --rating easy          # Record a revision
    revise later KEY                       # Flag a topic for later
    revise due                             # Topics due for review
    revise deck KEY --mode spaced          # Flashcards in review order
    revise prompt KEY -s syllabus.json --kind cards  # Prompt for generated content
    revise attach KEY --pack notes.json    # Store generated notes/cards
    revise attempts --user u1              # Recent attempt history
"""

from __future__ import annotations

import asyncio
import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Annotated, Any

import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from config import Settings, get_settings
from revision_engine.core.exceptions import GenerationError
from revision_engine.core.utils import Rating, now_ms, resolve_timezone
from revision_engine.generation.quiz_client import QuizGenerationClient
from revision_engine.generation.topic_pack import PromptKind, TopicPackStore, prompt_for
from revision_engine.quiz.evaluator import correct_answer_text, evaluate, score_attempt
from revision_engine.quiz.models import McqSingleAnswer
from revision_engine.storage.attempt_store import AttemptStore
from revision_engine.storage.kv import JsonFileKeyValueStore
from revision_engine.study.mastery_calculator import MasteryClassifier
from revision_engine.study.revision_service import RevisionService
from revision_engine.study.scheduler import DeckMode, SpacedScheduler
from revision_engine.study.stats_aggregator import FocusGranularity, StatsAggregator
from revision_engine.syllabus.topics import (
    TopicRef,
    build_topic_refs,
    split_sections,
    syllabus_progress,
)

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="revise",
    help="📚 Revise - spaced revision and mastery tracking",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()

_state: dict[str, Any] = {"data_dir": None}

SyllabusOption = Annotated[
    Path,
    typer.Option("--syllabus", "-s", exists=True, dir_okay=False, help="Syllabus JSON file"),
]
UserOption = Annotated[str, typer.Option("--user", "-u", help="User id owning the attempts")]
SubjectOption = Annotated[
    str | None, typer.Option("--subject", help="Restrict to one subject id")
]


@app.callback()
def _configure(
    data_dir: Annotated[
        Path | None, typer.Option("--data-dir", help="Override the data directory")
    ] = None,
) -> None:
    _state["data_dir"] = data_dir


def _settings() -> Settings:
    return get_settings()


def _data_dir() -> Path:
    return _state["data_dir"] or _settings().data_dir


def _service() -> RevisionService:
    settings = _settings()
    store = JsonFileKeyValueStore(_data_dir())
    return RevisionService(
        attempts=AttemptStore(store, settings.max_attempts),
        scheduler=SpacedScheduler(store),
        aggregator=StatsAggregator(**settings.get_stats_config()),
        classifier=MasteryClassifier(**settings.get_mastery_config()),
        packs=TopicPackStore(store),
    )


def _load_syllabus(path: Path) -> list[dict]:
    """Read a syllabus JSON: a list of subjects or {"subjects": [...]}."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        console.print(f"[red]Could not read syllabus {path}: {e}[/]")
        raise typer.Exit(1)

    if isinstance(data, dict):
        data = data.get("subjects", [])
    if not isinstance(data, list):
        console.print(f"[red]Syllabus {path} must hold a list of subjects[/]")
        raise typer.Exit(1)
    return data


def _topic_names(refs: list[TopicRef]) -> dict[str, TopicRef]:
    return {ref.key: ref for ref in refs}


def _format_date(epoch_ms: int | None) -> str:
    if not epoch_ms:
        return "—"
    tz = resolve_timezone(_settings().timezone)
    return datetime.fromtimestamp(epoch_ms / 1000, tz=tz).strftime("%d %b")


def _format_minutes(seconds: int) -> str:
    return f"{seconds // 60}m"


def _delta(value: int | None) -> str:
    if value is None:
        return "[dim]—[/]"
    color = "green" if value > 0 else "red" if value < 0 else "dim"
    return f"[{color}]{value:+d}[/]"


# =============================================================================
# Syllabus Commands
# =============================================================================


@app.command()
def topics(
    path: Annotated[Path, typer.Argument(exists=True, dir_okay=False, help="Syllabus JSON or chapter text")],
) -> None:
    """
    Show checkbox topics.

    A .json file is read as a syllabus; anything else as one chapter
    description grouped by its headers.
    """
    if path.suffix.lower() == ".json":
        subjects = _load_syllabus(path)
        refs = build_topic_refs(subjects)
        total, completed, pct = syllabus_progress(subjects)

        table = Table(title=f"Topics ({completed}/{total} done, {pct}%)", show_header=True)
        table.add_column("Key", style="dim")
        table.add_column("Subject", style="cyan")
        table.add_column("Chapter")
        table.add_column("Topic", style="bold")
        for ref in refs:
            table.add_row(ref.key, ref.subject_name, ref.chapter_name or "", ref.topic_name)
        console.print(table)
        return

    sections = split_sections(path.read_text(encoding="utf-8"))
    if not sections:
        console.print("[yellow]No checkbox topics found[/]")
        return
    for section in sections:
        lines = [f"{'[green]✓[/]' if t.completed else '[dim]○[/]'} {t.text}" for t in section.topics]
        console.print(Panel("\n".join(lines), title=section.title or "Topics", border_style="cyan"))


# =============================================================================
# Stats Commands
# =============================================================================


@app.command()
def stats(
    user: UserOption,
    subject: SubjectOption = None,
    series: Annotated[
        FocusGranularity, typer.Option("--series", help="Focus time grouping")
    ] = FocusGranularity.DAILY,
) -> None:
    """Show accuracy, focus time and study rhythm."""
    service = _service()
    now = now_ms()
    attempts = service.attempts.filter_by_user(user)
    report = service.aggregator.aggregate(attempts, now, subject_id=subject)
    overall = report.overall

    best_hour = f"{report.best_hour:02d}:00" if report.best_hour is not None else "—"
    console.print(
        Panel(
            f"Attempts: [bold]{overall.attempts}[/]   "
            f"Accuracy: [bold]{overall.accuracy}%[/] ({overall.correct}/{overall.total})   "
            f"Skipped: {overall.skipped}\n"
            f"Focus: {_format_minutes(overall.focus_seconds)}   "
            f"Streak: [bold]{report.streak}d[/]   "
            f"Missed (14d): {report.missed_last_14}   "
            f"Best hour: {best_hour}",
            title="📊 Overall",
            border_style="cyan",
        )
    )

    if report.by_subject:
        table = Table(title="By subject")
        table.add_column("Subject", style="cyan")
        table.add_column("Attempts", justify="right")
        table.add_column("Accuracy", justify="right")
        table.add_column("Last 7d", justify="right")
        table.add_column("Prev 7d", justify="right")
        table.add_column("Δ", justify="right")
        table.add_column("Focus", justify="right")
        for stats_ in report.by_subject.values():
            table.add_row(
                stats_.subject_name or stats_.subject_id,
                str(stats_.attempts),
                f"{stats_.accuracy}%",
                f"{stats_.last7.accuracy}%" if stats_.last7.total else "—",
                f"{stats_.prev7.accuracy}%" if stats_.prev7.total else "—",
                _delta(stats_.accuracy_delta),
                _format_minutes(stats_.focus_seconds),
            )
        console.print(table)

    if report.by_topic:
        ranked = {m.key: m for m in service.classifier.rank_mastery(report.by_topic)}
        table = Table(title="By topic")
        table.add_column("Topic", style="bold")
        table.add_column("Answered", justify="right")
        table.add_column("Accuracy", justify="right")
        table.add_column("Sec/Q", justify="right")
        table.add_column("Mastery", justify="right")
        for key, stats_ in sorted(report.by_topic.items()):
            mastery = ranked.get(key)
            band = f"[{mastery.band.color}]{mastery.score} {mastery.band.display_name}[/]" if mastery else "[dim]—[/]"
            table.add_row(key, str(stats_.total), f"{stats_.accuracy}%", str(stats_.avg_sec_per_q), band)
        console.print(table)

    points = service.aggregator.focus_series(
        [a for a in attempts if subject is None or a.subject_key == subject], series
    )
    if points:
        table = Table(title=f"Focus ({series.value})")
        table.add_column("Period")
        table.add_column("Focus", justify="right")
        for point in points:
            table.add_row(point.period, _format_minutes(point.seconds))
        console.print(table)


@app.command()
def weak(
    user: UserOption,
    syllabus: SyllabusOption,
    subject: SubjectOption = None,
) -> None:
    """List weak topics, highest priority first."""
    service = _service()
    refs = build_topic_refs(_load_syllabus(syllabus))
    overview = service.overview(user, refs, subject_id=subject)
    names = _topic_names(refs)

    if not overview.weak:
        console.print("[green]No weak topics. Keep practicing to stay sharp.[/]")
    else:
        table = Table(title=f"Weak topics ({overview.pending_weak})")
        table.add_column("#", justify="right", style="dim")
        table.add_column("Topic", style="bold")
        table.add_column("Subject", style="cyan")
        table.add_column("Accuracy", justify="right")
        table.add_column("Answered", justify="right")
        table.add_column("Priority", justify="right")
        table.add_column("Why")
        for i, item in enumerate(overview.weak, 1):
            ref = names[item.key]
            table.add_row(
                str(i),
                ref.topic_name,
                ref.subject_name,
                f"{item.accuracy}%",
                str(item.total),
                str(item.priority),
                item.reason,
            )
        console.print(table)

    if overview.strong:
        strong = ", ".join(names[m.key].topic_name for m in overview.strong if m.key in names)
        console.print(f"[green]Strong:[/] {strong}")
    console.print(f"[dim]Last revised: {_format_date(overview.last_revised_at)}[/]")


@app.command()
def session(
    user: UserOption,
    syllabus: SyllabusOption,
    minutes: Annotated[int, typer.Option("--minutes", "-m", help="Time available: 10, 20 or 30")] = 20,
    subject: SubjectOption = None,
) -> None:
    """Start a smart revision session from the weakest topics."""
    service = _service()
    refs = build_topic_refs(_load_syllabus(syllabus))
    try:
        plan = service.start_session(user, refs, minutes=minutes, subject_id=subject)
    except ValueError as e:
        console.print(f"[red]{e}[/]")
        raise typer.Exit(1)

    names = _topic_names(refs)
    header = Panel(
        f"[bold cyan]SMART REVISION[/]\n"
        f"Time: {plan.goal.minutes} min\n"
        f"Goal: {plan.goal.topics_count} topics, {plan.goal.mcqs} rapid-fire MCQs each",
        title="⏱",
        border_style="cyan",
    )
    console.print(header)

    if not plan.queue:
        console.print("[green]Nothing weak to revise. Try a practice quiz instead.[/]")
        return

    table = Table(show_header=True)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Key", style="dim")
    table.add_column("Topic", style="bold")
    table.add_column("Baseline", justify="right")
    for i, key in enumerate(plan.queue, 1):
        table.add_row(str(i), key, names[key].topic_name, f"{plan.baseline[key]}%")
    console.print(table)
    console.print("[dim]Run `revise rapid KEY` for each topic, then `revise mark KEY` when done.[/]")


@app.command()
def rapid(
    key: Annotated[str, typer.Argument(help="Topic key (subject__topic)")],
    user: UserOption,
    syllabus: SyllabusOption,
    minutes: Annotated[int, typer.Option("--minutes", "-m", help="Time available: 10, 20 or 30")] = 20,
) -> None:
    """Run a rapid-fire MCQ round and reschedule the topic from the result."""
    service = _service()
    topic = _topic_names(build_topic_refs(_load_syllabus(syllabus))).get(key)
    if topic is None:
        console.print(f"[red]Unknown topic key: {key}[/]")
        raise typer.Exit(1)

    settings = _settings()
    request = service.rapid_fire_request(user, topic, minutes)

    async def _generate():
        async with QuizGenerationClient(
            settings.quiz_api_url,
            timeout_ms=settings.quiz_api_timeout_ms,
            retry_attempts=settings.quiz_api_retry_attempts,
        ) as client:
            return await client.generate(request)

    try:
        with console.status("Generating questions..."):
            quiz = asyncio.run(_generate())
        questions = service.rapid_fire_questions(quiz)
    except GenerationError as e:
        console.print(f"[red]{e.message}[/]")
        raise typer.Exit(1)

    answers = {}
    for i, question in enumerate(questions, 1):
        options = "\n".join(f"  {chr(65 + j)}. {opt}" for j, opt in enumerate(question.options or []))
        console.print(Panel(f"{question.question}\n\n{options}", title=f"Q{i}/{len(questions)}", border_style="cyan"))

        raw = Prompt.ask("Answer (letter, blank to skip)", default="").strip().upper()
        index = ord(raw) - 65 if len(raw) == 1 and 0 <= ord(raw) - 65 < len(question.options or []) else None
        answers[question.id] = McqSingleAnswer(value=index)

        outcome = evaluate(question, answers[question.id])
        if outcome is True:
            console.print("[green]✓ Correct[/]")
        elif outcome is False:
            console.print(f"[red]✗ Wrong[/]  {correct_answer_text(question)}")
        else:
            console.print(f"[dim]Skipped[/]  {correct_answer_text(question)}")
        if question.explanation:
            console.print(f"[dim]{question.explanation}[/]")

    result = service.record_rapid_fire(user, topic, questions, answers)
    if result is None:
        return
    console.print(
        Panel(
            f"Accuracy: [bold]{result.accuracy}%[/]  Rating: [bold]{result.rating.value}[/]\n"
            f"Stage: {result.progress.stage}  Next review: {_format_date(result.progress.next_review_at)}",
            title="Rapid fire",
            border_style="green" if result.rating == Rating.EASY else "yellow",
        )
    )


# =============================================================================
# Scheduling Commands
# =============================================================================


@app.command()
def mark(
    key: Annotated[str, typer.Argument(help="Topic key (subject__topic)")],
    rating: Annotated[Rating, typer.Option("--rating", "-r", help="How the revision went")] = Rating.MEDIUM,
) -> None:
    """Mark a topic as revised."""
    progress = _service().scheduler.mark_topic_revised(key, rating)
    console.print(
        f"[green]✓[/] {key}: stage {progress.stage}, next review {_format_date(progress.next_review_at)}"
    )


@app.command()
def later(
    key: Annotated[str, typer.Argument(help="Topic key (subject__topic)")],
) -> None:
    """Flag a topic to revise later."""
    _service().scheduler.mark_revise_later(key)
    console.print(f"[yellow]⏸[/] {key} flagged for later")


@app.command()
def due() -> None:
    """List topics whose review date has passed."""
    scheduler = _service().scheduler
    items = scheduler.due_topics(now_ms())
    if not items:
        console.print("[green]Nothing due.[/]")
        return

    table = Table(title=f"Due for review ({len(items)})")
    table.add_column("Key", style="bold")
    table.add_column("Stage", justify="right")
    table.add_column("Due since", justify="right")
    table.add_column("Later", justify="center")
    for key, progress in items:
        table.add_row(
            key,
            str(progress.stage),
            _format_date(progress.next_review_at),
            "⏸" if progress.revise_later else "",
        )
    console.print(table)


@app.command()
def deck(
    key: Annotated[str, typer.Argument(help="Topic key (subject__topic)")],
    mode: Annotated[DeckMode, typer.Option("--mode", help="Card order")] = DeckMode.SPACED,
) -> None:
    """Show a topic's flashcards in review order."""
    cards = _service().scheduler.deck(key, mode)
    if not cards:
        console.print(f"[yellow]No flashcards for {key}[/]")
        return

    table = Table(title=f"Flashcards ({mode.value})")
    table.add_column("Id", style="dim")
    table.add_column("Front", style="bold")
    table.add_column("Back")
    table.add_column("Stage", justify="right")
    table.add_column("Next", justify="right")
    for card in cards:
        table.add_row(card.id, card.front, card.back, str(card.stage), _format_date(card.next_review_at))
    console.print(table)


@app.command()
def prompt(
    key: Annotated[str, typer.Argument(help="Topic key (subject__topic)")],
    syllabus: SyllabusOption,
    kind: Annotated[PromptKind, typer.Option("--kind", "-k", help="Content to ask for")] = PromptKind.PACK,
) -> None:
    """Print the generation prompt for a topic's notes, flashcards or explanation."""
    topic = _topic_names(build_topic_refs(_load_syllabus(syllabus))).get(key)
    if topic is None:
        console.print(f"[red]Unknown topic key: {key}[/]")
        raise typer.Exit(1)

    text = prompt_for(kind, topic.subject_name, topic.topic_name)
    console.print(text, markup=False, highlight=False, soft_wrap=True)
    if kind != PromptKind.EXPLAIN:
        console.print(f"[dim]Save the reply and run `revise attach {key} --{kind.value} FILE`.[/]")


@app.command()
def attach(
    key: Annotated[str, typer.Argument(help="Topic key (subject__topic)")],
    pack: Annotated[
        Path | None, typer.Option("--pack", exists=True, dir_okay=False, help="Generated revision notes")
    ] = None,
    cards: Annotated[
        Path | None, typer.Option("--cards", exists=True, dir_okay=False, help="Generated flashcards")
    ] = None,
) -> None:
    """Store generated revision notes and flashcards for a topic."""
    if pack is None and cards is None:
        console.print("[yellow]Nothing to attach: pass --pack and/or --cards[/]")
        raise typer.Exit(1)

    try:
        topic_pack, deck_cards = _service().attach_generated_content(
            key,
            pack_text=pack.read_text(encoding="utf-8") if pack else None,
            flashcards_text=cards.read_text(encoding="utf-8") if cards else None,
        )
    except GenerationError as e:
        console.print(f"[red]{e.message}[/]")
        raise typer.Exit(1)

    if topic_pack is not None:
        console.print(f"[green]✓[/] Notes stored: {len(topic_pack.formulas)} formulas, "
                      f"{len(topic_pack.rapid_questions)} rapid questions")
    if deck_cards is not None:
        console.print(f"[green]✓[/] {len(deck_cards)} flashcards stored")


@app.command()
def attempts(
    user: UserOption,
    limit: Annotated[int, typer.Option("--limit", "-n", help="Rows to show")] = 8,
) -> None:
    """Show recent quiz attempts with scores."""
    items = _service().attempts.filter_by_user(user)
    if not items:
        console.print("[yellow]No attempts yet[/]")
        return

    best = max(score_attempt(a).accuracy for a in items)
    table = Table(title=f"Attempts ({len(items)}, best {best}%)")
    table.add_column("Date")
    table.add_column("Subject", style="cyan")
    table.add_column("Topic", style="bold")
    table.add_column("Type")
    table.add_column("Mode")
    table.add_column("Score", justify="right")
    for attempt in items[:limit]:
        score = score_attempt(attempt)
        table.add_row(
            _format_date(attempt.created_at),
            attempt.subject_name or attempt.subject_key,
            attempt.topic_name,
            attempt.exam_type or "—",
            attempt.time_mode,
            f"{score.correct}/{score.total} ({score.accuracy}%)",
        )
    console.print(table)


def main() -> None:
    """CLI entry point."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=get_settings().log_level,
        format="<level>{message}</level>",
    )

    app()


if __name__ == "__main__":
    main()

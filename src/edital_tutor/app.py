"""Interactive CLI application."""
import string
import time
from datetime import datetime
from pathlib import Path

from loguru import logger
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from edital_tutor.ai import MAX_OPTIONS, ContentAI
from edital_tutor.config import DEFAULT_DB_PATH, configure_logging
from edital_tutor.db import SettingsStore, init_db
from edital_tutor.importer import import_edital
from edital_tutor.journeys import (
    add_question_log, add_study_session, complete_revision, create_journey, delete_journey,
    get_active_journey_id, list_journeys, load_journey, register_study,
    set_active_journey, update_edital, JourneyNotFoundError,
)
from edital_tutor.models import MODALITIES, SESSION_TYPES, Discipline, Edital, QuestionLog, StudySession
from edital_tutor.performance import (
    accuracy_band, achievements, aggregate_by_discipline, aggregate_by_topic,
    dashboard_summary, player_stats,
)
from edital_tutor.presets import load_presets
from edital_tutor.quiz import (
    QuotaExceededError, build_mock_exam, build_quiz, check_quota, is_offline,
    is_premium, load_usage, quiz_to_question_log, record_usage, remaining, set_premium,
)
from edital_tutor.scheduler import classify
from edital_tutor.syllabus import (
    add_discipline, add_topic, delete_discipline, delete_topic, explode_topic, find_topic,
    rename_discipline, rename_topic, topic_index,
)
from edital_tutor.topic_status import discipline_progress, syllabus_progress

console = Console()

EXIT_WORDS = ("q", "menu")
LETTERS = string.ascii_lowercase[:MAX_OPTIONS]
EDIT_ACTIONS = [
    "done", "register", "add-discipline", "add-topic", "rename-discipline",
    "rename-topic", "delete-discipline", "delete-topic", "explode", "ai",
]


class SessionExitRequested(Exception):
    """Raised when the user leaves an in-progress activity."""


def session_prompt(prompt: str, **kwargs) -> str:
    answer = Prompt.ask(prompt, **kwargs)
    if answer.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return answer


def session_int_prompt(prompt: str, choices: list[str] | None = None, default: int | None = None) -> int:
    kwargs = {} if default is None else {"default": str(default)}
    while True:
        answer = session_prompt(prompt, **kwargs)
        if answer.strip().isdigit() and (choices is None or answer.strip() in choices):
            return int(answer)
        console.print("[red]Please enter a valid number.[/red]")


def show_welcome():
    console.print(Panel(
        "[bold]Edital Tutor[/bold]\n[dim]Study tracker for public exams[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("study", "Timed study session"),
        ("edital", "Syllabus and topic status"),
        ("questions", "Log questions or take an AI quiz"),
        ("reviews", "Spaced-repetition reviews"),
        ("dashboard", "Progress and performance"),
        ("arena", "XP, level and achievements"),
        ("summary", "AI summary of a topic"),
        ("journeys", "Switch or create a journey"),
        ("premium", "Toggle premium plan"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def choose_discipline(edital: Edital, with_topics: bool = False) -> Discipline:
    disciplines = [d for d in edital.disciplines if d.topics or not with_topics]
    if not disciplines:
        console.print(f"[yellow]The syllabus has no {'topics' if with_topics else 'disciplines'} yet.[/yellow]")
        raise SessionExitRequested()
    for i, d in enumerate(disciplines, 1):
        console.print(f"  [cyan]{i}[/cyan]) {d.name}")
    d_idx = session_int_prompt("Discipline", choices=[str(i) for i in range(1, len(disciplines) + 1)])
    return disciplines[d_idx - 1]


def choose_topic(edital: Edital) -> tuple[str, str]:
    """Ask for a discipline then a topic; returns their ids."""
    discipline = choose_discipline(edital, with_topics=True)
    for i, t in enumerate(discipline.topics, 1):
        console.print(f"  [cyan]{i}[/cyan]) {t.name}")
    t_idx = session_int_prompt("Topic", choices=[str(i) for i in range(1, len(discipline.topics) + 1)])
    return discipline.id, discipline.topics[t_idx - 1].id


def format_duration(seconds: int) -> str:
    return f"{seconds // 3600:02d}:{seconds % 3600 // 60:02d}:{seconds % 60:02d}"


def run_quiz_session(questions: list) -> int:
    """Ask each question and return how many were answered correctly."""
    if not questions:
        console.print("[yellow]No questions available![/yellow]")
        return 0
    if is_offline(questions):
        console.print("[yellow]Offline mode: showing sample questions.[/yellow]")
    correct = 0
    console.print(f"\n[bold]Quiz[/bold] - {len(questions)} questions\n")
    for i, q in enumerate(questions, 1):
        console.print(f"[bold]Q{i}.[/bold] {q.question}\n")
        letters = LETTERS[:len(q.options)]
        for letter, option in zip(letters, q.options):
            console.print(f"  [cyan]{letter})[/cyan] {option}")
        answer = session_prompt("\nYour answer", choices=list(letters) + list(EXIT_WORDS))
        if letters.index(answer) == q.correct_answer:
            console.print("[green]Correct![/green]")
            correct += 1
        else:
            console.print(f"[red]Incorrect.[/red] Answer: [green]{letters[q.correct_answer]}[/green]")
        if q.explanation:
            console.print(f"[dim]{q.explanation}[/dim]")
        console.print()
    console.print(f"[bold]Score: {correct}/{len(questions)} ({correct/len(questions)*100:.0f}%)[/bold]\n")
    return correct


def cmd_study(db_path: str, journey_id: str, timer=time.monotonic, clock=datetime.now):
    journey = load_journey(db_path, journey_id)
    discipline_id, topic_id = choose_topic(journey.edital)
    study_type = session_prompt("Method", choices=list(SESSION_TYPES), default="theory")
    session_prompt("[dim]Press Enter to start the timer[/dim]", default="")
    started = timer()
    session_prompt("[green]Studying...[/green] [dim]Press Enter to stop[/dim]", default="")
    duration = int(timer() - started)
    if duration <= 0:
        console.print("[yellow]Nothing to record.[/yellow]")
        return
    session = StudySession(
        id=f"s-{int(clock().timestamp() * 1000)}",
        discipline_id=discipline_id,
        topic_id=topic_id,
        duration=duration,
        date=clock(),
        type=study_type,
    )
    add_study_session(db_path, journey_id, session, clock=clock)
    console.print(f"[green]Logged {format_duration(duration)}. Reviews scheduled for 1, 7 and 30 days.[/green]")


def edit_syllabus(edital: Edital, action: str, ai: ContentAI | None = None, clock=datetime.now) -> Edital | None:
    """Apply one editing action chosen in the syllabus screen; None means nothing changed."""
    if action == "add-discipline":
        return add_discipline(edital, session_prompt("Discipline name"), clock=clock)
    if action == "add-topic":
        discipline = choose_discipline(edital)
        return add_topic(edital, discipline.id, session_prompt("Topic name"), clock=clock)
    if action == "rename-discipline":
        discipline = choose_discipline(edital)
        return rename_discipline(edital, discipline.id, session_prompt("New name", default=discipline.name))
    if action == "delete-discipline":
        discipline = choose_discipline(edital)
        if not Confirm.ask(f"Delete {discipline.name} and its topics?", default=False):
            return None
        return delete_discipline(edital, discipline.id)
    if action in ("rename-topic", "delete-topic", "explode"):
        discipline_id, topic_id = choose_topic(edital)
        if action == "rename-topic":
            current = find_topic(edital, topic_id)
            return rename_topic(edital, discipline_id, topic_id, session_prompt("New name", default=current.name))
        if action == "delete-topic":
            return delete_topic(edital, discipline_id, topic_id)
        try:
            return explode_topic(edital, discipline_id, topic_id, clock=clock)
        except ValueError as e:
            console.print(f"[yellow]{e}[/yellow]")
            return None
    if action == "ai":
        if ai is None or not ai.available:
            console.print("[yellow]AI editing needs GEMINI_API_KEY.[/yellow]")
            return None
        instruction = session_prompt("What should change?")
        with console.status("Updating syllabus..."):
            updated = ai.update_edital(edital, instruction)
        if updated is None:
            console.print("[red]The syllabus could not be updated.[/red]")
        return updated
    return None


def cmd_edital(db_path: str, journey_id: str, ai: ContentAI | None = None, clock=datetime.now):
    journey = load_journey(db_path, journey_id)
    status = journey.study_data.topic_status
    console.print(f"\n[bold]{journey.edital.name}[/bold] - "
                  f"{syllabus_progress(journey.edital, status)}% studied\n")
    for d in journey.edital.disciplines:
        done, total = discipline_progress(d, status)
        table = Table(title=f"{d.name} ({done}/{total})", title_justify="left")
        table.add_column("Topic", style="cyan")
        for m in MODALITIES:
            table.add_column(m, justify="center")
        for t in d.topics:
            st = status.get(t.id)
            flags = ["[green]x[/green]" if st and getattr(st, m) else "" for m in MODALITIES]
            name = t.name if st and not st.pending else f"[dim]{t.name}[/dim]"
            table.add_row(name, *flags)
        console.print(table)
    action = session_prompt("Action", choices=EDIT_ACTIONS, default="done")
    if action == "done":
        return
    if action == "register":
        _, topic_id = choose_topic(journey.edital)
        raw = session_prompt(f"Modalities ({', '.join(MODALITIES)}), comma separated", default="")
        modalities = [m.strip() for m in raw.split(",") if m.strip() in MODALITIES]
        register_study(db_path, journey_id, topic_id, modalities, clock=clock)
        console.print("[green]Topic updated.[/green]")
        return
    updated = edit_syllabus(journey.edital, action, ai, clock)
    if updated is not None:
        update_edital(db_path, journey_id, updated, clock=clock)
        console.print("[green]Syllabus saved.[/green]")


def cmd_questions(db_path: str, journey_id: str, ai: ContentAI, clock=datetime.now):
    journey = load_journey(db_path, journey_id)
    mode = session_prompt("Mode", choices=["manual", "quiz", "exam"], default="manual")
    if mode == "manual":
        discipline_id, topic_id = choose_topic(journey.edital)
        total = session_int_prompt("Questions answered")
        correct = session_int_prompt("Correct answers")
        log = QuestionLog(
            id=f"q-{int(clock().timestamp() * 1000)}",
            discipline_id=discipline_id, topic_id=topic_id,
            total=total, correct=correct, date=clock(),
        )
        add_question_log(db_path, journey_id, log, clock=clock)
        console.print("[green]Saved![/green]")
        return

    store = SettingsStore(db_path)
    premium = is_premium(store)
    usage = load_usage(store, clock().date())
    left = remaining(usage, premium)
    if left is not None:
        console.print(f"[dim]Free plan: {left} AI questions left today.[/dim]")

    if mode == "quiz":
        discipline_id, topic_id = choose_topic(journey.edital)
        count = session_int_prompt("Number of questions", default=5)
        check_quota(usage, count, premium)
        with console.status("Generating questions..."):
            questions = build_quiz(ai, journey.edital, discipline_id, topic_id, count)
    else:
        exam_mode = session_prompt("Mix by", choices=["discipline", "topic"], default="discipline")
        selections = {}
        if exam_mode == "discipline":
            for d in journey.edital.disciplines:
                n = session_int_prompt(f"{d.name}: questions", default=0)
                if n > 0:
                    selections[d.id] = n
        else:
            while True:
                _, t_id = choose_topic(journey.edital)
                n = session_int_prompt("Questions for this topic", default=1)
                if n > 0:
                    selections[t_id] = selections.get(t_id, 0) + n
                if not Confirm.ask("Add another topic?", default=False):
                    break
        discipline_id = topic_id = None
        check_quota(usage, sum(selections.values()), premium)
        with console.status("Preparing your mock exam..."):
            questions = build_mock_exam(ai, journey.edital, selections, mode=exam_mode)
    record_usage(store, usage, len(questions), premium)

    correct = run_quiz_session(questions)
    if questions:
        log = quiz_to_question_log(
            journey.edital, len(questions), correct, clock(), discipline_id, topic_id,
        )
        if log is not None:
            add_question_log(db_path, journey_id, log, clock=clock)
            console.print("[dim]Score saved to your history.[/dim]")


def cmd_reviews(db_path: str, journey_id: str, clock=datetime.now):
    journey = load_journey(db_path, journey_id)
    index = topic_index(journey.edital)
    buckets = classify(journey.study_data.revisions, clock())
    numbered = []
    for title, items, color in (
        ("Overdue", buckets.overdue, "red"),
        ("Due today", buckets.due_today, "yellow"),
        ("Upcoming", buckets.upcoming, "white"),
    ):
        table = Table(title=f"[{color}]{title}[/{color}] ({len(items)})", title_justify="left")
        table.add_column("#", justify="right")
        table.add_column("Label")
        table.add_column("Due")
        table.add_column("Topic", style="cyan")
        table.add_column("Discipline")
        for rev in items:
            numbered.append(rev)
            topic, discipline = index.get(rev.topic_id, (None, None))
            table.add_row(
                str(len(numbered)), rev.label or "Rev", rev.due_date.strftime("%Y-%m-%d"),
                topic.name if topic else "Unknown topic", discipline.name if discipline else "",
            )
        console.print(table)
    if not numbered:
        return
    choice = session_int_prompt("Complete review # (0 to skip)", default=0)
    if 0 < choice <= len(numbered):
        complete_revision(db_path, journey_id, numbered[choice - 1].id, clock=clock)
        console.print("[green]Review completed![/green]")


def cmd_dashboard(db_path: str, journey_id: str, clock=datetime.now):
    journey = load_journey(db_path, journey_id)
    summary = dashboard_summary(journey.edital, journey.study_data, clock())
    console.print(Panel(f"[bold]{journey.edital.name}[/bold]", title="Dashboard", border_style="blue"))
    color = accuracy_band(summary["accuracy"])
    console.print(f"\n  Syllabus: [bold]{summary['progress']}%[/bold]  |  "
                  f"Hours: [bold]{summary['hours']}h[/bold]  |  "
                  f"Questions: [bold]{summary['questions']}[/bold]  |  "
                  f"Accuracy: [{color}]{summary['accuracy']:.0f}%[/{color}]  |  "
                  f"Due reviews: [bold]{summary['due_reviews']}[/bold]\n")

    by_discipline = aggregate_by_discipline(journey.edital.disciplines, journey.study_data.questions)
    table = Table(title="Performance by discipline")
    table.add_column("Discipline", style="cyan")
    table.add_column("Accuracy", justify="right")
    table.add_column("Questions", justify="right")
    for row in by_discipline:
        c = accuracy_band(row["accuracy_pct"])
        table.add_row(row["name"], f"[{c}]{row['accuracy_pct']}%[/{c}]", str(row["total"]))
    console.print(table)

    by_topic = aggregate_by_topic(journey.edital.disciplines, journey.study_data.questions)
    if by_topic:
        console.print("\n[bold]Weakest topics:[/bold]")
        for row in by_topic[:5]:
            c = accuracy_band(row["accuracy_pct"])
            console.print(f"  [{c}]{row['accuracy_pct']}%[/{c}] {row['name']} "
                          f"[dim]({row['questions_attempted']} questions)[/dim]")


def cmd_arena(db_path: str, journey_id: str):
    journey = load_journey(db_path, journey_id)
    stats = player_stats(journey.study_data)
    console.print(Panel(
        f"[bold]Level {stats['level']}[/bold]  ({stats['xp']} XP)\n"
        f"{stats['total_hours']}h studied, {stats['total_questions']} questions, "
        f"{stats['accuracy']:.0f}% accuracy",
        title="Arena", border_style="magenta",
    ))
    for a in achievements(stats):
        mark = "[green]✓[/green]" if a["achieved"] else "[dim]·[/dim]"
        console.print(f"  {mark} [bold]{a['name']}[/bold] [dim]{a['description']}[/dim]")


def cmd_summary(db_path: str, journey_id: str, ai: ContentAI):
    journey = load_journey(db_path, journey_id)
    _, topic_id = choose_topic(journey.edital)
    topic, discipline = topic_index(journey.edital)[topic_id]
    with console.status("Writing summary..."):
        text = ai.generate_summary(topic.name, discipline.name)
    console.print(Markdown(text))


def cmd_new_journey(db_path: str, ai: ContentAI) -> str | None:
    presets = load_presets()
    for i, e in enumerate(presets, 1):
        console.print(f"  [cyan]{i}[/cyan]) {e.name}")
    console.print("  [cyan]i[/cyan]) Import from file")
    console.print("  [cyan]b[/cyan]) Blank syllabus")
    choice = session_prompt("Syllabus", choices=[str(i) for i in range(1, len(presets) + 1)] + ["i", "b"])
    if choice == "b":
        name = session_prompt("Exam name")
        edital = Edital(id=f"edital-{int(datetime.now().timestamp() * 1000)}", name=name)
        edital = add_discipline(edital, session_prompt("First discipline"))
    elif choice == "i":
        file_path = session_prompt("File path")
        if not Path(file_path).exists():
            console.print(f"[red]File not found: {file_path}[/red]")
            return None
        try:
            with console.status("Reading syllabus..."):
                edital = import_edital(file_path, ai)
        except ValueError as e:
            console.print(f"[red]Could not import {file_path}: {e}[/red]")
            return None
    else:
        edital = presets[int(choice) - 1]
    journey = create_journey(db_path, edital)
    topics = sum(len(d.topics) for d in edital.disciplines)
    console.print(f"[green]Journey created: {edital.name} ({len(edital.disciplines)} disciplines, "
                  f"{topics} topics)[/green]")
    return journey.id


def cmd_journeys(db_path: str, ai: ContentAI) -> str | None:
    journeys = list_journeys(db_path)
    for i, j in enumerate(journeys, 1):
        console.print(f"  [cyan]{i}[/cyan]) {j['name']}")
    console.print("  [cyan]n[/cyan]) New journey")
    console.print("  [cyan]d[/cyan]) Delete a journey")
    numbers = [str(i) for i in range(1, len(journeys) + 1)]
    choice = session_prompt("Journey", choices=numbers + ["n", "d"])
    if choice == "n":
        return cmd_new_journey(db_path, ai)
    if choice == "d":
        if not journeys:
            return None
        target = journeys[session_int_prompt("Delete journey #", choices=numbers) - 1]
        if Confirm.ask(f"Delete {target['name']} and all its history?", default=False):
            delete_journey(db_path, target["id"])
            console.print("[green]Journey deleted.[/green]")
        return get_active_journey_id(db_path)
    journey_id = journeys[int(choice) - 1]["id"]
    set_active_journey(db_path, journey_id)
    return journey_id


def cmd_premium(db_path: str):
    store = SettingsStore(db_path)
    set_premium(store, not is_premium(store))
    state = "active" if is_premium(store) else "off"
    console.print(f"[green]Premium plan {state}.[/green]")


def resolve_journey(db_path: str, ai: ContentAI) -> str | None:
    journey_id = get_active_journey_id(db_path)
    if journey_id:
        try:
            load_journey(db_path, journey_id)
            return journey_id
        except JourneyNotFoundError:
            logger.warning("Active journey {} no longer exists", journey_id)
    if list_journeys(db_path):
        return cmd_journeys(db_path, ai)
    console.print("[dim]Let's set up your first journey.[/dim]")
    return cmd_new_journey(db_path, ai)


def main():
    configure_logging()
    db_path = DEFAULT_DB_PATH
    init_db(db_path)
    ai = ContentAI()
    show_welcome()

    journey_id = None
    while True:
        try:
            while journey_id is None:
                journey_id = resolve_journey(db_path, ai)
        except SessionExitRequested:
            console.print("[dim]Good luck on your exam![/dim]")
            return

        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="study").strip().lower()
        try:
            if choice == "study":
                cmd_study(db_path, journey_id)
            elif choice == "edital":
                cmd_edital(db_path, journey_id, ai)
            elif choice == "questions":
                cmd_questions(db_path, journey_id, ai)
            elif choice == "reviews":
                cmd_reviews(db_path, journey_id)
            elif choice == "dashboard":
                cmd_dashboard(db_path, journey_id)
            elif choice == "arena":
                cmd_arena(db_path, journey_id)
            elif choice == "summary":
                cmd_summary(db_path, journey_id, ai)
            elif choice == "journeys":
                journey_id = cmd_journeys(db_path, ai)
            elif choice == "premium":
                cmd_premium(db_path)
            elif choice in ("quit", "exit", "q"):
                console.print("[dim]Good luck on your exam![/dim]")
                break
            else:
                console.print("[red]Unknown command. Try again.[/red]")
        except SessionExitRequested:
            console.print("[dim]Back to menu.[/dim]")
        except QuotaExceededError as e:
            console.print(f"[yellow]{e}. Upgrade to premium for unlimited quizzes.[/yellow]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except Exception as e:
            logger.exception("Command {} failed", choice)
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
Interactive chat REPL for lesson practice.
"""

from pathlib import Path
from typing import Callable, List, Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.auto_suggest import AutoSuggestFromHistory
from prompt_toolkit.history import FileHistory
from prompt_toolkit.patch_stdout import patch_stdout
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..lessons import Lesson, LessonFormatError, LessonStore
from ..logger import get_logger
from ..tutoring import (
    EmptyLessonError,
    Message,
    MessageRole,
    SessionBusyError,
    TutoringEngine,
)
from .commands import get_command_help

logger = get_logger(__name__)

END_OF_LESSON_MARKER = 'END'

# Commands typed during a lesson need this prefix; bare input is an answer
COMMAND_PREFIX = '/'

PHASE_LABELS = {
    'vocabulary': 'Лексика',
    'practice': 'Упражнения',
}


def lessons_table(lessons: List[Lesson]) -> Table:
    """Numbered overview of stored lessons"""
    table = Table(title="Загруженные уроки")
    table.add_column("#", style="cyan")
    table.add_column("Урок")
    table.add_column("Слова", justify="right")
    table.add_column("Предл.", justify="right")

    for i, lesson in enumerate(lessons, 1):
        table.add_row(str(i), lesson.number, str(len(lesson.vocabulary)), str(len(lesson.exercises)))
    return table


class TutorREPL:
    """Interactive REPL around a TutoringEngine and a LessonStore"""

    def __init__(
        self,
        engine: TutoringEngine,
        store: LessonStore,
        console: Console = None,
        history_path: Path = None,
        read_line: Callable[[str], str] = None,
    ):
        self.console = console or Console()
        self.engine = engine
        self.store = store
        self.engine.on_message = self._show_message
        self.history_path = history_path
        self._read_line = read_line
        self.prompt_session: Optional[PromptSession] = None

    def run(self):
        """Main REPL loop"""
        self._print_welcome()

        if self._read_line is None:
            if self.history_path is not None:
                self.history_path.parent.mkdir(parents=True, exist_ok=True)
            self.prompt_session = PromptSession(
                history=FileHistory(str(self.history_path)) if self.history_path else None,
                auto_suggest=AutoSuggestFromHistory(),
            )
            self._read_line = self.prompt_session.prompt

            # Paced tutor messages arrive from timer threads while the prompt is shown
            with patch_stdout():
                self._loop()
        else:
            self._loop()

    def _loop(self):
        while True:
            try:
                user_input = self._read_line(self._get_prompt())

                if not user_input.strip():
                    continue

                result = self.process_input(user_input.strip())

                if result == 'exit':
                    self._handle_exit()
                    break

            except KeyboardInterrupt:
                self.console.print("\n[dim]Use 'exit' to quit[/dim]")
            except EOFError:
                self._handle_exit()
                break

    def _print_welcome(self):
        """Print welcome message"""
        welcome = """
[bold blue]DeutschLehrer AI[/bold blue] - German lesson tutor

Add a lesson, pick it, and answer the tutor's questions.

[dim]Commands: lessons, add, load, start, status, stop, help
During a lesson your input is the answer; type /status, /stop or /help for commands.
Type 'help' for all commands or 'help <cmd>' for details.[/dim]
"""
        self.console.print(Panel(welcome, border_style="blue"))

        if self.engine.gateway.is_available():
            self.console.print("[green]Feedback service connected.[/green]")
        else:
            self.console.print(
                "[yellow]Note: No API key configured. Run 'deutschlehrer --setup' "
                "or set GOOGLE_API_KEY.[/yellow]"
            )

        if len(self.store):
            self._cmd_lessons('')

    def _get_prompt(self) -> str:
        """Generate context-aware prompt"""
        parts = ['deutsch']
        if self.engine.is_active() and self.engine.lesson is not None:
            position, total = self.engine.progress()
            phase = self.engine.state.phase.value
            parts.append(f"[{self.engine.lesson.number}:{phase} {position}/{total}]")
        return ' '.join(parts) + '> '

    def process_input(self, user_input: str) -> Optional[str]:
        """Dispatch a command, or submit the input as an answer during a lesson"""
        explicit = user_input.startswith(COMMAND_PREFIX)

        # During a lesson 'Stop' is a German answer; '/stop' is the command
        if self.engine.is_active() and not explicit:
            return self._submit_answer(user_input)

        parts = user_input.lstrip(COMMAND_PREFIX).split(maxsplit=1)
        if not parts:
            return None
        command = parts[0].lower()
        args = parts[1] if len(parts) > 1 else ''

        handlers = {
            'lessons': self._cmd_lessons,
            'add': self._cmd_add,
            'load': self._cmd_load,
            'start': self._cmd_start,
            'status': self._cmd_status,
            'stop': self._cmd_stop,
            'transcript': self._cmd_transcript,
            'help': self._cmd_help,
            'exit': lambda _: 'exit',
            'quit': lambda _: 'exit',
        }

        handler = handlers.get(command)
        if handler:
            return handler(args)

        self.console.print(f"[red]Unknown command: {command}[/red]")
        self.console.print("[dim]Type 'help' for commands, or 'start <n>' to begin a lesson.[/dim]")
        return None

    # === Command Handlers ===

    def _cmd_lessons(self, args: str) -> None:
        """List stored lessons"""
        lessons = self.store.all()
        if not lessons:
            self.console.print("[yellow]No lessons yet. Use 'add' or 'load <file>'.[/yellow]")
            return

        self.console.print(lessons_table(lessons))

    def _cmd_add(self, args: str) -> None:
        """Read a pasted lesson until the END marker"""
        self.console.print(
            f"[dim]Paste the lesson text. Finish with a line containing only {END_OF_LESSON_MARKER}.[/dim]"
        )
        lines = []
        while True:
            try:
                line = self._read_line('... ')
            except (KeyboardInterrupt, EOFError):
                self.console.print("[dim]Cancelled.[/dim]")
                return
            if line.strip() == END_OF_LESSON_MARKER:
                break
            lines.append(line)

        self._store_lesson_text('\n'.join(lines))

    def _cmd_load(self, args: str) -> None:
        """Add a lesson from a file"""
        if not args:
            self.console.print("[red]Usage: load <file>[/red]")
            return

        path = Path(args.strip()).expanduser()
        try:
            text = path.read_text(encoding='utf-8')
        except OSError as e:
            logger.debug("Cannot read lesson file %s: %s", path, e)
            self.console.print(f"[red]Cannot read {path}: {e}[/red]")
            return

        self._store_lesson_text(text)

    def _store_lesson_text(self, text: str) -> None:
        try:
            lesson = self.store.add_from_text(text)
        except LessonFormatError as e:
            self.console.print(f"[red]{e}[/red]")
            return

        self.console.print(
            f"\n[green]Saved:[/green] {lesson.title} "
            f"({len(lesson.vocabulary)} слов, {len(lesson.exercises)} предл.)"
        )
        self.console.print(f"[dim]Use 'start {len(self.store)}' to practise it.[/dim]")

    def _cmd_start(self, args: str) -> None:
        """Start a lesson by list position"""
        if not args.strip().isdigit():
            self.console.print("[red]Usage: start <n>[/red]")
            return

        lesson = self.store.get_by_position(int(args.strip()))
        if lesson is None:
            self.console.print(f"[red]Lesson not found: {args}[/red]")
            self.console.print("[dim]Use 'lessons' to list stored lessons[/dim]")
            return

        try:
            self.engine.start_lesson(lesson)
        except (EmptyLessonError, SessionBusyError) as e:
            self.console.print(f"[red]{e}[/red]")

    def _cmd_status(self, args: str) -> None:
        """Show current lesson status"""
        if not self.engine.is_active():
            self.console.print("[yellow]No active lesson. Use 'start <n>'.[/yellow]")
            return

        lesson = self.engine.lesson
        position, total = self.engine.progress()
        phase = self.engine.state.phase.value
        self.console.print(f"\n[bold]{lesson.title}[/bold]")
        self.console.print(f"  Phase: {PHASE_LABELS.get(phase, phase)}")
        self.console.print(f"  Progress: {position}/{total}")
        self.console.print(f"  Words in this session: {len(self.engine.state.vocab_batch)}")
        self.console.print(f"  Exercises: {len(lesson.exercises)}")
        waiting = self.engine.scheduler.pending()
        if waiting:
            self.console.print(f"  [dim]Tutor messages on the way: {waiting}[/dim]")

    def _cmd_stop(self, args: str) -> None:
        try:
            response = self.engine.stop()
        except SessionBusyError as e:
            self.console.print(f"[red]{e}[/red]")
            return
        if not response.accepted:
            self.console.print(f"[yellow]{response.message}[/yellow]")

    def _cmd_transcript(self, args: str) -> None:
        if not self.engine.transcript:
            self.console.print("[yellow]No conversation yet.[/yellow]")
            return
        for message in list(self.engine.transcript):
            self._render(message)

    def _cmd_help(self, args: str) -> None:
        self.console.print(get_command_help(args.strip() or None))

    def _submit_answer(self, answer: str) -> None:
        with self.console.status("[dim]Проверяю...[/dim]"):
            response = self.engine.submit(answer)
        if not response.accepted:
            self.console.print(f"[yellow]{response.message}[/yellow]")

    # === Output ===

    def _show_message(self, message: Message) -> None:
        """Engine callback: echo tutor messages as they are appended"""
        if message.role == MessageRole.TUTOR:
            self._render(message)

    def _render(self, message: Message) -> None:
        if message.role == MessageRole.TUTOR:
            self.console.print(Panel(message.content, title="Lehrer", title_align="left", border_style="blue"))
        else:
            self.console.print(f"[bold]Вы:[/bold] {message.content}")

    def _handle_exit(self):
        self.engine.scheduler.cancel_all()
        self.console.print("[dim]Auf Wiedersehen![/dim]")

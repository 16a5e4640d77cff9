#!/usr/bin/env python3
"""
DeutschLehrer - German Lesson Chat Tutor CLI

Usage:
    deutschlehrer                      # interactive tutor
    deutschlehrer --add lesson1.txt    # store a lesson from a file
    deutschlehrer --list               # list stored lessons
    deutschlehrer --setup              # configure the feedback service
"""

import argparse
import logging
import random
import sys
from pathlib import Path

from rich.console import Console

from .config import (
    clear_api_key,
    get_config_dir,
    get_logs_dir,
    get_setting,
    load_config,
    prompt_for_api_key,
)
from .lessons import LessonFormatError, LessonStore
from .llm import PROVIDERS, create_llm_client, get_preferred_provider
from .logger import setup_logger
from .repl.session import lessons_table


def list_lessons(store: LessonStore, console: Console) -> None:
    """Print stored lessons"""
    if not len(store):
        console.print("No lessons stored yet. Add one with 'deutschlehrer --add <file>'.")
        return

    console.print(lessons_table(store.all()))


def add_lesson_file(store: LessonStore, path: Path, console: Console) -> int:
    """Parse and store a lesson file, returning an exit code"""
    try:
        text = path.expanduser().read_text(encoding='utf-8')
    except OSError as e:
        console.print(f"[red]Cannot read {path}: {e}[/red]")
        return 1

    try:
        lesson = store.add_from_text(text)
    except LessonFormatError as e:
        console.print(f"[red]{e}[/red]")
        return 1

    console.print(
        f"[green]Saved:[/green] {lesson.title} "
        f"({len(lesson.vocabulary)} слов, {len(lesson.exercises)} предл.)"
    )
    return 0


def run_setup() -> None:
    """Interactive provider/API key setup"""
    print("DeutschLehrer Setup")
    print("=" * 40)
    config = load_config()
    provider = get_preferred_provider()
    if provider:
        key = config.get(PROVIDERS[provider]['config_key']) or ''
        shown = f"...{key[-6:]}" if key else "(from environment)"
        print(f"\nCurrent provider: {PROVIDERS[provider]['display_name']} {shown}")
        replace = input("Configure a different key? [y/N]: ").strip().lower()
        if replace != 'y':
            print("Setup complete.")
            return
    prompt_for_api_key()


def build_repl(args: argparse.Namespace, console: Console):
    """Wire the engine, gateway and store together for the interactive tutor"""
    from .repl import TutorREPL
    from .tutoring import FeedbackGateway, FollowUpScheduler, TutoringEngine

    llm = create_llm_client(
        provider=args.provider,
        model=args.model,
        timeout=get_setting('feedback_timeout'),
    )
    gateway = FeedbackGateway(llm)
    engine = TutoringEngine(
        gateway=gateway,
        rng=random.Random(args.seed),
        scheduler=FollowUpScheduler(delay=get_setting('pacing_delay')),
        history_limit=get_setting('history_limit'),
    )
    return TutorREPL(
        engine=engine,
        store=LessonStore(),
        console=console,
        history_path=get_config_dir() / 'repl_history',
    )


def main():
    """Main CLI entry point"""

    parser = argparse.ArgumentParser(
        description='DeutschLehrer - practise German lessons with an AI tutor',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  deutschlehrer --setup                 # Configure API key (first time)
  deutschlehrer --add lesson1.txt       # Store a lesson
  deutschlehrer --list                  # List stored lessons
  deutschlehrer                         # Start the interactive tutor
  deutschlehrer --provider anthropic    # Use a specific feedback provider

Lesson format:
  Урок 1:
  Лексика:
  schlafen - спать
  Упражнения:
  1. Я сплю.
  Ответы:
  1. Ich schlafe.
        """
    )

    parser.add_argument('--add', metavar='FILE', type=Path, help='Store a lesson from a text file')
    parser.add_argument('--list', action='store_true', help='List stored lessons')
    parser.add_argument('--setup', action='store_true', help='Configure the feedback service API key')
    parser.add_argument('--clear-key', nargs='?', const='', metavar='PROVIDER',
                        help='Remove a stored API key (all providers if none given)')
    parser.add_argument('--provider', choices=list(PROVIDERS.keys()),
                        help='Feedback provider (default: preferred/first configured)')
    parser.add_argument('--model', help='Model name override')
    parser.add_argument('--seed', type=int, help='Seed for word selection (reproducible sessions)')
    parser.add_argument('--debug', action='store_true', help='Show debug logging')

    args = parser.parse_args()

    console = Console()
    setup_logger(
        level=logging.DEBUG if args.debug else logging.WARNING,
        log_dir=get_logs_dir(),
    )

    if args.setup:
        run_setup()
        return

    if args.clear_key is not None:
        clear_api_key(args.clear_key or None)
        return

    if args.add or args.list:
        store = LessonStore()
        if args.add:
            code = add_lesson_file(store, args.add, console)
            if code:
                sys.exit(code)
        if args.list:
            list_lessons(store, console)
        return

    repl = build_repl(args, console)
    repl.run()


if __name__ == "__main__":
    main()

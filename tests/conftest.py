"""Shared fixtures for the DeutschLehrer tests."""

import threading

import pytest

from deutschlehrer.lessons import parse_lesson_text
from deutschlehrer.tutoring import Feedback, FeedbackError


SAMPLE_LESSON = """Урок 1:
Лексика:
schlafen - спать
gehen - идти
Упражнения:
1. Я сплю.
2. Он идет домой.
Ответы:
1. Ich schlafe.
2. Er geht nach Hause.
"""


def make_lesson_text(words: int, exercises: int, number: str = '7') -> str:
    """Build a lesson text with numbered placeholder items"""
    lines = [f"Урок {number}:", "Лексика:"]
    lines += [f"wort{i} - слово{i}" for i in range(words)]
    lines.append("Упражнения:")
    lines += [f"{i + 1}. Предложение {i}." for i in range(exercises)]
    lines.append("Ответы:")
    lines += [f"{i + 1}. Satz {i}." for i in range(exercises)]
    return '\n'.join(lines)


class ScriptedGateway:
    """Gateway double returning queued verdicts ('correct', 'incorrect' or an exception)"""

    def __init__(self, verdicts=None, default=True):
        self.verdicts = list(verdicts or [])
        self.default = default
        self.requests = []

    def is_available(self):
        return True

    def evaluate(self, request):
        self.requests.append(request)
        verdict = self.verdicts.pop(0) if self.verdicts else self.default
        if isinstance(verdict, Exception):
            raise verdict
        if verdict:
            return Feedback(text="Richtig! Отлично.", correct=True, structured=True)
        return Feedback(text="Есть ошибка. Напишите правильно.", correct=False, structured=True)


class BlockingGateway(ScriptedGateway):
    """Gateway double that waits for release() before answering"""

    def __init__(self):
        super().__init__()
        self.entered = threading.Event()
        self._release = threading.Event()

    def release(self):
        self._release.set()

    def evaluate(self, request):
        self.entered.set()
        if not self._release.wait(timeout=5):
            raise FeedbackError("test gateway never released")
        return super().evaluate(request)


class ManualScheduler:
    """Scheduler double: callbacks run only when fire() is called"""

    def __init__(self):
        self.callbacks = []
        self.cancelled = 0

    def schedule(self, callback):
        self.callbacks.append(callback)

    def cancel_all(self):
        # Keep the callbacks: the engine must drop stale ones by itself
        self.cancelled += 1
        return 0

    def fire(self):
        callbacks, self.callbacks = self.callbacks, []
        for callback in callbacks:
            callback()


@pytest.fixture
def sample_lesson():
    return parse_lesson_text(SAMPLE_LESSON)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep config and lessons out of the real home directory"""
    home = tmp_path / 'home'
    monkeypatch.setenv('DEUTSCHLEHRER_HOME', str(home))
    for var in ('GOOGLE_API_KEY', 'ANTHROPIC_API_KEY', 'OPENAI_API_KEY'):
        monkeypatch.delenv(var, raising=False)
    return home

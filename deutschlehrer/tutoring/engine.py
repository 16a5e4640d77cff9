#!/usr/bin/env python3
"""
TutoringEngine - session controller for a lesson.
Sequences the vocabulary drill and the exercises, asks the feedback gateway to
judge each answer, and decides when to repeat, advance or finish.
"""

import random
import threading
from typing import Callable, List, Optional, Tuple

from .feedback import FeedbackGateway, FeedbackRequest
from .scheduler import FollowUpScheduler
from .state import (
    VOCAB_BATCH_SIZE,
    Message,
    MessageRole,
    SessionStateError,
    TutoringPhase,
    TutoringResponse,
    TutoringState,
)
from . import prompts
from ..lessons import Lesson
from ..logger import get_logger

logger = get_logger(__name__)


class TutoringError(Exception):
    """Base class for rejected tutoring operations"""


class SessionBusyError(TutoringError):
    """Raised when an operation needs the session while an answer is being judged"""


class EmptyLessonError(TutoringError):
    """Raised when a lesson has neither vocabulary nor exercises"""


def select_vocab_batch(vocab_size: int, rng: random.Random, limit: int = VOCAB_BATCH_SIZE) -> List[int]:
    """Pick min(limit, vocab_size) distinct word indices in random order"""
    return rng.sample(range(vocab_size), min(limit, vocab_size))


class TutoringEngine:
    """Drives one learner through one lesson at a time"""

    def __init__(
        self,
        gateway: FeedbackGateway,
        rng: Optional[random.Random] = None,
        scheduler: Optional[FollowUpScheduler] = None,
        history_limit: int = 6,
        on_message: Optional[Callable[[Message], None]] = None,
    ):
        self.gateway = gateway
        self.rng = rng or random.Random()
        self.scheduler = scheduler or FollowUpScheduler()
        self.history_limit = history_limit
        self.on_message = on_message

        self.state = TutoringState()
        self.lesson: Optional[Lesson] = None
        self.transcript: List[Message] = []

        # Bumped on every start/stop; follow-ups from older sessions are dropped
        self._generation = 0
        self._busy = False
        self._lock = threading.RLock()

    # =========================================================================
    # Session lifecycle
    # =========================================================================

    def is_active(self) -> bool:
        return self.state.is_active()

    def is_busy(self) -> bool:
        """True while an answer is being judged"""
        return self._busy

    def start_lesson(self, lesson: Lesson) -> TutoringResponse:
        """Begin a fresh session on a lesson, replacing any current one"""
        if not lesson.vocabulary and not lesson.exercises:
            raise EmptyLessonError(f"Lesson {lesson.number} has no words and no exercises")

        with self._lock:
            if self._busy:
                raise SessionBusyError("Cannot start a lesson while an answer is being checked")

            self._invalidate_follow_ups()
            batch = select_vocab_batch(len(lesson.vocabulary), self.rng)
            self.lesson = lesson
            self.state.reset_for_lesson(lesson, batch)
            self.transcript = []
            self.state.check_invariants(self.lesson)

            greeting = prompts.GREETING.format(number=lesson.number)
            if self.state.phase == TutoringPhase.VOCABULARY:
                word = lesson.vocabulary[batch[0]]
                opening = prompts.FIRST_WORD_PROMPT.format(russian=word.russian)
            else:
                opening = prompts.FIRST_EXERCISE_PROMPT.format(russian=lesson.exercises[0].russian)

            message = self._append(MessageRole.TUTOR, f"{greeting}\n{opening}")

        logger.info(
            "Started lesson %s: %d of %d words, %d exercises",
            lesson.number, len(batch), len(lesson.vocabulary), len(lesson.exercises)
        )
        return TutoringResponse(message=message.content, phase=self.state.phase)

    def stop(self) -> TutoringResponse:
        """End the current session early"""
        with self._lock:
            if self._busy:
                raise SessionBusyError("Cannot stop while an answer is being checked")
            if not self.is_active():
                return TutoringResponse.rejected("Нет активного урока.")

            number = self.lesson.number if self.lesson else ''
            self._invalidate_follow_ups()
            self.state.reset_to_idle()
            message = self._append(MessageRole.TUTOR, prompts.STOPPED.format(number=number))

        logger.info("Stopped lesson %s", number)
        return TutoringResponse(message=message.content, phase=TutoringPhase.IDLE)

    def progress(self) -> Tuple[int, int]:
        """(1-based position, total items) in the current phase"""
        with self._lock:
            total = self.state.batch_size(self.lesson)
            if not self.is_active() or total == 0:
                return (0, 0)
            return (self.state.current_index + 1, total)

    # =========================================================================
    # Answer handling
    # =========================================================================

    def submit(self, user_answer: str) -> TutoringResponse:
        """Judge the learner's answer for the current item"""
        answer = user_answer.strip()

        with self._lock:
            if not self.is_active():
                return TutoringResponse.rejected("Нет активного урока. Выберите урок, чтобы начать.")
            if not answer:
                return TutoringResponse.rejected("Пустой ответ.", phase=self.state.phase)
            if self._busy:
                logger.debug("Rejected answer while another is being judged")
                return TutoringResponse.rejected(
                    "Подождите, предыдущий ответ еще проверяется.", phase=self.state.phase
                )

            self.state.check_invariants(self.lesson)
            self._busy = True
            generation = self._generation
            phase, index = self.state.phase, self.state.current_index
            expected, context = self._current_target()
            history = tuple(self.transcript[-self.history_limit:]) if self.history_limit > 0 else ()
            self._append(MessageRole.USER, answer)

        request = FeedbackRequest(
            student_answer=answer,
            official_answer=expected,
            lesson_context=context,
            recent_history=history,
        )

        try:
            try:
                feedback = self.gateway.evaluate(request)
            except Exception as e:
                # Any gateway failure, timeout included: keep the step for a retry
                logger.warning("Feedback failed for %s item %d: %s", phase.value, index, e)
                with self._lock:
                    message = self._append(MessageRole.TUTOR, prompts.TECHNICAL_ERROR)
                return TutoringResponse.failure(message.content, phase=phase)

            with self._lock:
                if generation != self._generation:
                    raise SessionStateError("Session replaced while an answer was being judged")

                self._append(MessageRole.TUTOR, feedback.text)
                logger.debug(
                    "Answer for %s item %d judged %s",
                    phase.value, index, 'correct' if feedback.correct else 'incorrect'
                )
                if feedback.correct:
                    self._advance()
                return TutoringResponse(
                    message=feedback.text,
                    correct=feedback.correct,
                    phase=self.state.phase,
                )
        finally:
            self._busy = False

    def _current_target(self) -> Tuple[str, str]:
        """Expected answer and context string for the current item"""
        if self.state.phase == TutoringPhase.VOCABULARY:
            word = self.lesson.vocabulary[self.state.vocab_batch[self.state.current_index]]
            return word.german, prompts.VOCABULARY_CONTEXT.format(russian=word.russian, german=word.german)

        if self.state.phase == TutoringPhase.PRACTICE:
            exercise = self.lesson.exercises[self.state.current_index]
            return exercise.german_answer, prompts.PRACTICE_CONTEXT.format(
                russian=exercise.russian, german=exercise.german_answer
            )

        raise SessionStateError("No current item while idle")

    def _advance(self):
        """Move past a correctly answered item (caller holds the lock)"""
        lesson = self.lesson
        state = self.state

        if state.current_index + 1 < state.batch_size(lesson):
            state.current_index += 1
            if state.phase == TutoringPhase.VOCABULARY:
                word = lesson.vocabulary[state.vocab_batch[state.current_index]]
                text = prompts.NEXT_WORD_PROMPT.format(russian=word.russian)
            else:
                text = prompts.NEXT_EXERCISE_PROMPT.format(
                    russian=lesson.exercises[state.current_index].russian
                )
            state.check_invariants(lesson)
            self._schedule_tutor_message(text)
            return

        if state.phase == TutoringPhase.VOCABULARY and lesson.exercises:
            state.phase = TutoringPhase.PRACTICE
            state.current_index = 0
            state.check_invariants(lesson)
            logger.info("Lesson %s: vocabulary -> practice", lesson.number)
            self._schedule_tutor_message(
                prompts.PRACTICE_TRANSITION.format(russian=lesson.exercises[0].russian)
            )
            return

        # Last exercise done, or vocabulary done with nothing to practice
        state.reset_to_idle()
        logger.info("Lesson %s complete", lesson.number)
        self._schedule_tutor_message(prompts.COMPLETION.format(number=lesson.number))

    # =========================================================================
    # Transcript helpers
    # =========================================================================

    def _append(self, role: MessageRole, content: str) -> Message:
        message = Message(role=role, content=content)
        with self._lock:
            self.transcript.append(message)
        if self.on_message:
            self.on_message(message)
        return message

    def _schedule_tutor_message(self, content: str):
        """Deliver a tutor message after the pacing delay, unless the session moved on"""
        generation = self._generation

        def deliver():
            with self._lock:
                if generation != self._generation:
                    logger.debug("Dropped stale follow-up from session %d", generation)
                    return
                self._append(MessageRole.TUTOR, content)

        self.scheduler.schedule(deliver)

    def _invalidate_follow_ups(self):
        self._generation += 1
        self.scheduler.cancel_all()

#!/usr/bin/env python3
"""
State management for the tutoring session.
Tracks the drill phase, the cursor into the current batch, and the transcript.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from ..lessons import Lesson

# Maximum number of words drilled in one vocabulary phase
VOCAB_BATCH_SIZE = 8


class TutoringPhase(Enum):
    """Phases of a lesson session"""
    IDLE = 'idle'              # No lesson running (initial and terminal)
    VOCABULARY = 'vocabulary'  # Translating the selected words
    PRACTICE = 'practice'      # Translating the exercise sentences


class MessageRole(Enum):
    """Author of a transcript message"""
    TUTOR = 'tutor'
    USER = 'user'


class SessionStateError(RuntimeError):
    """Raised when the tutoring state violates its invariants (a bug, not a user error)"""


@dataclass(frozen=True)
class Message:
    """One transcript entry"""
    role: MessageRole
    content: str
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class TutoringState:
    """Current state of the tutoring session"""
    active_lesson_id: Optional[str] = None
    phase: TutoringPhase = TutoringPhase.IDLE
    current_index: int = 0
    vocab_batch: List[int] = field(default_factory=list)  # indices into lesson.vocabulary

    def reset_for_lesson(self, lesson: Lesson, vocab_batch: List[int]):
        """Reset state for a freshly started lesson"""
        self.active_lesson_id = lesson.id
        self.vocab_batch = list(vocab_batch)
        self.current_index = 0
        self.phase = TutoringPhase.VOCABULARY if self.vocab_batch else TutoringPhase.PRACTICE

    def reset_to_idle(self):
        self.active_lesson_id = None
        self.phase = TutoringPhase.IDLE
        self.current_index = 0
        self.vocab_batch = []

    def is_active(self) -> bool:
        return self.phase != TutoringPhase.IDLE

    def batch_size(self, lesson: Optional[Lesson]) -> int:
        """Number of items in the current phase"""
        if self.phase == TutoringPhase.VOCABULARY:
            return len(self.vocab_batch)
        if self.phase == TutoringPhase.PRACTICE and lesson is not None:
            return len(lesson.exercises)
        return 0

    def check_invariants(self, lesson: Optional[Lesson]):
        """Raise SessionStateError if the state is inconsistent with the lesson"""
        if self.phase == TutoringPhase.IDLE:
            if self.active_lesson_id is not None:
                raise SessionStateError("Idle session still references a lesson")
            return

        if lesson is None or lesson.id != self.active_lesson_id:
            raise SessionStateError(f"Phase {self.phase.value} without its active lesson")

        vocab_size = len(lesson.vocabulary)
        if len(set(self.vocab_batch)) != len(self.vocab_batch):
            raise SessionStateError(f"Duplicate indices in vocabulary batch {self.vocab_batch}")
        if any(not 0 <= i < vocab_size for i in self.vocab_batch):
            raise SessionStateError(f"Vocabulary batch {self.vocab_batch} out of range")
        if len(self.vocab_batch) != min(VOCAB_BATCH_SIZE, vocab_size):
            raise SessionStateError(
                f"Vocabulary batch has {len(self.vocab_batch)} words, expected "
                f"{min(VOCAB_BATCH_SIZE, vocab_size)}"
            )

        size = self.batch_size(lesson)
        if not 0 <= self.current_index < size:
            raise SessionStateError(
                f"Index {self.current_index} outside {self.phase.value} batch of {size}"
            )


@dataclass
class TutoringResponse:
    """Outcome of a learner action, for the host to display"""
    message: str                         # Main message to display
    accepted: bool = True                # False when the input was rejected unprocessed
    correct: Optional[bool] = None       # Verdict, when feedback was obtained
    error: bool = False                  # The feedback service failed
    phase: TutoringPhase = TutoringPhase.IDLE

    @classmethod
    def rejected(cls, message: str, phase: TutoringPhase = TutoringPhase.IDLE) -> 'TutoringResponse':
        """Create a response for input that was not processed"""
        return cls(message=message, accepted=False, phase=phase)

    @classmethod
    def failure(cls, message: str, phase: TutoringPhase) -> 'TutoringResponse':
        """Create a response for a failed feedback call"""
        return cls(message=message, error=True, phase=phase)

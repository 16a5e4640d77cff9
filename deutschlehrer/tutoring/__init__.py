#!/usr/bin/env python3
"""
Interactive tutoring for a parsed lesson.

A session drills up to eight words from the lesson's vocabulary, then walks
through the translation exercises, with an LLM judging every answer.
"""

from .state import (
    VOCAB_BATCH_SIZE,
    TutoringPhase,
    TutoringState,
    TutoringResponse,
    Message,
    MessageRole,
    SessionStateError,
)
from .feedback import (
    Feedback,
    FeedbackError,
    FeedbackGateway,
    FeedbackRequest,
    FeedbackTimeoutError,
    classify_feedback,
)
from .scheduler import FollowUpScheduler
from .engine import (
    TutoringEngine,
    TutoringError,
    SessionBusyError,
    EmptyLessonError,
    select_vocab_batch,
)

__all__ = [
    'VOCAB_BATCH_SIZE',
    'TutoringPhase',
    'TutoringState',
    'TutoringResponse',
    'Message',
    'MessageRole',
    'SessionStateError',
    'Feedback',
    'FeedbackError',
    'FeedbackGateway',
    'FeedbackRequest',
    'FeedbackTimeoutError',
    'classify_feedback',
    'FollowUpScheduler',
    'TutoringEngine',
    'TutoringError',
    'SessionBusyError',
    'EmptyLessonError',
    'select_vocab_batch',
]

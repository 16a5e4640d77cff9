#!/usr/bin/env python3
"""
Lesson content: data model, text parser and persisted collection.
"""

from .models import VocabularyItem, ExerciseItem, Lesson
from .parser import (
    LessonFormatError,
    FORMAT_ERROR_MESSAGE,
    UNKNOWN_LESSON_NUMBER,
    parse_lesson_text,
)
from .store import LessonStore, STORAGE_KEY

__all__ = [
    'VocabularyItem',
    'ExerciseItem',
    'Lesson',
    'LessonFormatError',
    'FORMAT_ERROR_MESSAGE',
    'UNKNOWN_LESSON_NUMBER',
    'parse_lesson_text',
    'LessonStore',
    'STORAGE_KEY',
]

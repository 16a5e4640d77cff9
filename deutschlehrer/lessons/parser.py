#!/usr/bin/env python3
"""
Parser for structured lesson texts.

Expected layout (headers are case-insensitive, the label line is optional):

    Урок 1:
    Лексика:
    schlafen - спать
    gehen - идти
    Упражнения:
    1. Я сплю.
    Ответы:
    1. Ich schlafe.
"""

import re
import uuid
from typing import List, Optional, Tuple

from .models import ExerciseItem, Lesson, VocabularyItem
from ..logger import get_logger

logger = get_logger(__name__)

UNKNOWN_LESSON_NUMBER = 'Unknown'

FORMAT_ERROR_MESSAGE = (
    "Ошибка формата! Убедитесь, что заголовки Лексика:, Упражнения: и Ответы: присутствуют."
)

LESSON_LABEL_PATTERN = re.compile(r'(?:Урок|Lesson)\s+(\d+|[A-Za-z\d-]+)\s*:', re.IGNORECASE)

SECTION_HEADERS = (
    ('vocabulary', re.compile(r'Лексика\s*:', re.IGNORECASE)),
    ('exercises', re.compile(r'Упражнения\s*:', re.IGNORECASE)),
    ('answers', re.compile(r'Ответы\s*:', re.IGNORECASE)),
)

# A dash surrounded by whitespace wins over a bare hyphen ('E-Mail - письмо')
SPACED_SEPARATOR = re.compile(r'\s+[-–—]\s+')
BARE_SEPARATOR = '-'

ENUMERATION_MARKER = re.compile(r'^\d+[\s.)-]+\s*')


class LessonFormatError(ValueError):
    """Raised when a lesson text is missing a required section"""

    def __init__(self, detail: str = ''):
        self.detail = detail
        super().__init__(FORMAT_ERROR_MESSAGE + (f" ({detail})" if detail else ''))


def parse_lesson_text(text: str) -> Lesson:
    """
    Parse a lesson text into a Lesson.

    Raises:
        LessonFormatError: a section header is missing or out of order, or
            the exercise and answer counts differ
    """
    try:
        return _parse(text)
    except LessonFormatError as e:
        logger.info("Lesson rejected: %s", e.detail or e)
        raise
    except Exception as e:
        logger.exception("Unexpected error while parsing lesson")
        raise LessonFormatError(f"unexpected error: {e}") from e


def _parse(raw_text: str) -> Lesson:
    text = raw_text.replace('\r\n', '\n')

    label_match = LESSON_LABEL_PATTERN.search(text)
    number = label_match.group(1) if label_match else UNKNOWN_LESSON_NUMBER

    vocab_body, exercises_body, answers_body = _split_sections(text)

    vocabulary = [item for item in map(_parse_vocabulary_line, _lines(vocab_body)) if item]

    exercise_lines = [_strip_enumeration(line) for line in _lines(exercises_body)]
    answer_lines = [_strip_enumeration(line) for line in _lines(answers_body)]
    if len(exercise_lines) != len(answer_lines):
        raise LessonFormatError(
            f"{len(exercise_lines)} exercises but {len(answer_lines)} answers"
        )

    exercises = [
        ExerciseItem(russian=russian, german_answer=german)
        for russian, german in zip(exercise_lines, answer_lines)
    ]

    lesson = Lesson(
        id=str(uuid.uuid4()),
        number=number,
        vocabulary=tuple(vocabulary),
        exercises=tuple(exercises),
        raw_content=raw_text,
    )
    logger.debug(
        "Parsed lesson %s: %d words, %d exercises",
        lesson.number, len(lesson.vocabulary), len(lesson.exercises)
    )
    return lesson


def _split_sections(text: str) -> Tuple[str, str, str]:
    """Locate the three section bodies, each running up to the next header"""
    positions = []
    for name, pattern in SECTION_HEADERS:
        match = pattern.search(text)
        if not match:
            raise LessonFormatError(f"missing section '{name}'")
        positions.append((name, match.start(), match.end()))

    for (prev_name, prev_start, _), (name, start, _) in zip(positions, positions[1:]):
        if start < prev_start:
            raise LessonFormatError(f"section '{name}' appears before '{prev_name}'")

    (_, _, vocab_end), (_, ex_start, ex_end), (_, ans_start, ans_end) = positions
    return text[vocab_end:ex_start], text[ex_end:ans_start], text[ans_end:]


def _lines(body: str) -> List[str]:
    return [line.strip() for line in body.strip().split('\n') if line.strip()]


def _parse_vocabulary_line(line: str) -> Optional[VocabularyItem]:
    """Split 'german - russian'; lines without a usable separator are dropped"""
    spaced = SPACED_SEPARATOR.search(line)
    if spaced:
        german, russian = line[:spaced.start()], line[spaced.end():]
    elif BARE_SEPARATOR in line:
        german, russian = line.split(BARE_SEPARATOR, 1)
    else:
        return None

    german, russian = german.strip(), russian.strip()
    if not german or not russian:
        return None
    return VocabularyItem(german=german, russian=russian)


def _strip_enumeration(line: str) -> str:
    return ENUMERATION_MARKER.sub('', line).strip()

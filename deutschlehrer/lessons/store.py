#!/usr/bin/env python3
"""
Persistent lesson collection.
Lessons are stored as a JSON list under a fixed key, loaded once and
rewritten whenever the collection changes.
"""

import json
import os
from pathlib import Path
from typing import Iterator, List, Optional

from .models import Lesson
from .parser import parse_lesson_text
from ..logger import get_logger

logger = get_logger(__name__)

STORAGE_KEY = 'deutsch_lessons'


class LessonStore:
    """Append-only collection of parsed lessons backed by a JSON file"""

    def __init__(self, path: Path = None):
        if path is None:
            from ..config import get_lessons_path
            path = get_lessons_path()
        self.path = Path(path)
        self._lessons: List[Lesson] = self._load()

    def _load(self) -> List[Lesson]:
        """Load lessons from disk (missing or unreadable file means empty)"""
        if not self.path.exists():
            return []

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            lessons = [Lesson.from_dict(item) for item in data.get(STORAGE_KEY, [])]
        except (json.JSONDecodeError, IOError, KeyError, TypeError, AttributeError) as e:
            logger.warning("Could not read lessons from %s: %s", self.path, e)
            return []

        logger.debug("Loaded %d lessons from %s", len(lessons), self.path)
        return lessons

    def _save(self, lessons: List[Lesson]) -> None:
        """Rewrite the whole collection through a temp file, then swap it in"""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {STORAGE_KEY: [lesson.to_dict() for lesson in lessons]}
        tmp_path = self.path.with_name(self.path.name + '.tmp')
        try:
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(payload, f, ensure_ascii=False, indent=2)
            tmp_path.chmod(0o600)
            os.replace(tmp_path, self.path)
        finally:
            if tmp_path.exists():
                tmp_path.unlink()

    def add(self, lesson: Lesson) -> Lesson:
        """Add a parsed lesson and persist the collection"""
        lessons = self._lessons + [lesson]
        self._save(lessons)
        self._lessons = lessons
        logger.info("Stored lesson %s (%s)", lesson.number, lesson.id)
        return lesson

    def add_from_text(self, text: str) -> Lesson:
        """Parse a lesson text and store it. Raises LessonFormatError, storing nothing."""
        return self.add(parse_lesson_text(text))

    def all(self) -> List[Lesson]:
        return list(self._lessons)

    def get(self, lesson_id: str) -> Optional[Lesson]:
        for lesson in self._lessons:
            if lesson.id == lesson_id:
                return lesson
        return None

    def get_by_position(self, position: int) -> Optional[Lesson]:
        """Get a lesson by its 1-based position in the list"""
        if 1 <= position <= len(self._lessons):
            return self._lessons[position - 1]
        return None

    def __len__(self) -> int:
        return len(self._lessons)

    def __iter__(self) -> Iterator[Lesson]:
        return iter(list(self._lessons))

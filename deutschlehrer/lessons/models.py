#!/usr/bin/env python3
"""
Lesson data model: vocabulary pairs and translation exercises.
Lessons are built once by the parser and never mutated afterwards.
"""

from dataclasses import dataclass
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class VocabularyItem:
    """A German word with its Russian translation"""
    german: str
    russian: str


@dataclass(frozen=True)
class ExerciseItem:
    """A Russian sentence to translate and its official German answer"""
    russian: str
    german_answer: str


@dataclass(frozen=True)
class Lesson:
    """One parsed lesson"""
    id: str
    number: str                                # display label, e.g. '3' or 'A1-2'
    vocabulary: Tuple[VocabularyItem, ...]
    exercises: Tuple[ExerciseItem, ...]
    raw_content: str                           # source text, kept verbatim

    @property
    def title(self) -> str:
        return f"Урок {self.number}"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize lesson to dictionary"""
        return {
            'id': self.id,
            'number': self.number,
            'vocabulary': [
                {'german': item.german, 'russian': item.russian}
                for item in self.vocabulary
            ],
            'exercises': [
                {'russian': item.russian, 'german_answer': item.german_answer}
                for item in self.exercises
            ],
            'raw_content': self.raw_content,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Lesson':
        """Deserialize lesson from dictionary"""
        return cls(
            id=str(data['id']),
            number=str(data.get('number', 'Unknown')),
            vocabulary=tuple(
                VocabularyItem(german=str(v['german']), russian=str(v['russian']))
                for v in data.get('vocabulary', [])
            ),
            exercises=tuple(
                ExerciseItem(russian=str(e['russian']), german_answer=str(e['german_answer']))
                for e in data.get('exercises', [])
            ),
            raw_content=str(data.get('raw_content', '')),
        )

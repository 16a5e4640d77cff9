#!/usr/bin/env python3
"""
Feedback gateway: asks a language model to judge one learner answer.

The model is asked for a JSON verdict. When it answers in prose instead,
the verdict falls back to a phrase heuristic over the text.
"""

import json
import re
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .prompts import FEEDBACK_PROMPT, INCORRECT_MARKERS, SYSTEM_INSTRUCTION
from .state import Message, MessageRole
from ..llm import BaseLLMClient, LLMTimeoutError
from ..logger import get_logger

logger = get_logger(__name__)

class FeedbackError(Exception):
    """Raised when the feedback service fails or returns an unusable reply"""


class FeedbackTimeoutError(FeedbackError):
    """Raised when the feedback service does not answer in time"""


@dataclass(frozen=True)
class FeedbackRequest:
    """Everything the feedback service needs to judge one answer"""
    student_answer: str
    official_answer: str
    lesson_context: str
    recent_history: Sequence[Message] = field(default_factory=tuple)


@dataclass(frozen=True)
class Feedback:
    """Judgement of one answer"""
    text: str
    correct: bool
    structured: bool = False  # verdict came from the JSON contract, not the heuristic


def classify_feedback(text: str) -> bool:
    """Return True when feedback reads as 'correct' (no retry/error phrase in it)"""
    lowered = text.lower()
    return not any(marker in lowered for marker in INCORRECT_MARKERS)


def parse_feedback_reply(reply: str) -> Feedback:
    """Extract the verdict from a model reply"""
    data = _extract_json(reply)
    if isinstance(data, dict) and isinstance(data.get('feedback'), str) and data['feedback'].strip():
        text = data['feedback'].strip()
        verdict = data.get('correct')
        if isinstance(verdict, bool):
            return Feedback(text=text, correct=verdict, structured=True)
        return Feedback(text=text, correct=classify_feedback(text))

    text = reply.strip()
    return Feedback(text=text, correct=classify_feedback(text))


def _extract_json(reply: str) -> Optional[object]:
    """Parse a JSON object from a reply, tolerating markdown code fences"""
    candidates = []
    fenced = re.search(r'```(?:json)?\s*(.*?)\s*```', reply, re.DOTALL)
    if fenced:
        candidates.append(fenced.group(1))
    candidates.append(reply.strip())

    for candidate in candidates:
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue
    return None


class FeedbackGateway:
    """Adapter between the tutor and an LLM provider"""

    def __init__(
        self,
        llm_client: Optional[BaseLLMClient],
        max_tokens: int = 800,
    ):
        self.llm = llm_client
        self.max_tokens = max_tokens

    def is_available(self) -> bool:
        return self.llm is not None

    def evaluate(self, request: FeedbackRequest) -> Feedback:
        """
        Judge a student's answer.

        Raises:
            FeedbackTimeoutError: the client gave up waiting for a reply
            FeedbackError: provider failure, missing client or empty reply
        """
        if self.llm is None:
            raise FeedbackError("No feedback service configured")

        messages = self.build_messages(request)
        provider = getattr(self.llm, 'provider', 'llm')
        logger.debug("Requesting feedback from %s (%d turns)", provider, len(messages))

        started = time.perf_counter()
        reply = self._call(messages)
        duration_ms = (time.perf_counter() - started) * 1000
        logger.debug("Feedback from %s in %.0fms", provider, duration_ms)

        if not reply or not reply.strip():
            raise FeedbackError("Empty reply from feedback service")

        feedback = parse_feedback_reply(reply)
        if not feedback.structured:
            logger.info("Feedback reply was not structured; verdict from phrase heuristic")
        return feedback

    def build_messages(self, request: FeedbackRequest) -> List[Dict[str, str]]:
        """History turns followed by the judging prompt, in provider-neutral form"""
        turns = [
            {
                'role': 'assistant' if msg.role == MessageRole.TUTOR else 'user',
                'content': msg.content,
            }
            for msg in request.recent_history
        ]
        turns.append({
            'role': 'user',
            'content': FEEDBACK_PROMPT.format(
                student_answer=request.student_answer,
                official_answer=request.official_answer,
                lesson_context=request.lesson_context,
            ),
        })
        return _normalize_turns(turns)

    def _call(self, messages: List[Dict[str, str]]) -> str:
        """Single provider call; the client enforces its own request timeout"""
        try:
            response = self.llm.create(
                messages=messages,
                system=SYSTEM_INSTRUCTION,
                max_tokens=self.max_tokens,
            )
        except LLMTimeoutError as e:
            raise FeedbackTimeoutError(f"Feedback service timed out: {e}") from e
        except Exception as e:
            raise FeedbackError(f"Feedback service error: {e}") from e
        return response.content


def _normalize_turns(turns: List[Dict[str, str]]) -> List[Dict[str, str]]:
    """Merge consecutive same-role turns and drop leading assistant turns"""
    normalized: List[Dict[str, str]] = []
    for turn in turns:
        if not normalized and turn['role'] == 'assistant':
            continue
        if normalized and normalized[-1]['role'] == turn['role']:
            normalized[-1] = {
                'role': turn['role'],
                'content': normalized[-1]['content'] + '\n\n' + turn['content'],
            }
        else:
            normalized.append(dict(turn))
    return normalized

#!/usr/bin/env python3
"""
Tests for the feedback gateway and verdict parsing.
"""

from unittest.mock import Mock

import pytest

from deutschlehrer.llm import LLMResponse, LLMTimeoutError
from deutschlehrer.tutoring import (
    FeedbackError,
    FeedbackGateway,
    FeedbackRequest,
    FeedbackTimeoutError,
    Message,
    MessageRole,
    classify_feedback,
)
from deutschlehrer.tutoring.feedback import parse_feedback_reply, _normalize_turns
from deutschlehrer.tutoring.prompts import SYSTEM_INSTRUCTION


def make_client(content):
    client = Mock()
    client.provider = 'mock'
    client.create.return_value = LLMResponse(content=content, model='mock-1', provider='mock')
    return client


def make_request(history=()):
    return FeedbackRequest(
        student_answer="Ich schlafe.",
        official_answer="Ich schlafe.",
        lesson_context="Перевод предложения: Я сплю. -> Ich schlafe.",
        recent_history=history,
    )


class TestVerdictParsing:
    """Tests for parse_feedback_reply and the phrase heuristic"""

    def test_json_verdict(self):
        feedback = parse_feedback_reply('{"correct": false, "feedback": "Почти! Глагол сильный."}')

        assert feedback.correct is False
        assert feedback.text == "Почти! Глагол сильный."
        assert feedback.structured

    def test_json_in_code_fence(self):
        reply = 'Вот ответ:\n```json\n{"correct": true, "feedback": "Richtig!"}\n```'
        feedback = parse_feedback_reply(reply)

        assert feedback.correct is True
        assert feedback.text == "Richtig!"

    def test_json_verdict_overrides_phrases(self):
        """Test the explicit flag wins even if the text mentions an error"""
        feedback = parse_feedback_reply('{"correct": true, "feedback": "Ошибка не найдена, отлично!"}')
        assert feedback.correct is True

    def test_prose_falls_back_to_heuristic(self):
        feedback = parse_feedback_reply("Есть ошибка в окончании. Напишите правильно.")

        assert feedback.correct is False
        assert not feedback.structured
        assert feedback.text == "Есть ошибка в окончании. Напишите правильно."

    def test_json_without_flag_uses_heuristic(self):
        feedback = parse_feedback_reply('{"feedback": "Отлично!"}')

        assert feedback.correct is True
        assert not feedback.structured

    @pytest.mark.parametrize('text,expected', [
        ("Richtig! Отлично.", True),
        ("Неправильно, попробуйте еще раз.", False),
        ("Это НЕВЕРНО.", False),
        ("Есть ошибка: der -> den.", False),
        ("Хорошо, но напишите правильно артикль.", False),
    ])
    def test_classify_feedback(self, text, expected):
        assert classify_feedback(text) is expected


class TestFeedbackGateway:
    """Tests for FeedbackGateway.evaluate"""

    def test_evaluate_passes_system_and_prompt(self):
        client = make_client('{"correct": true, "feedback": "Sehr gut!"}')
        gateway = FeedbackGateway(client)

        feedback = gateway.evaluate(make_request())

        assert feedback.correct is True
        kwargs = client.create.call_args.kwargs
        assert kwargs['system'] == SYSTEM_INSTRUCTION
        prompt = kwargs['messages'][-1]['content']
        assert 'STUDENT ANSWER: "Ich schlafe."' in prompt
        assert 'Я сплю.' in prompt

    def test_no_client(self):
        gateway = FeedbackGateway(None)

        assert not gateway.is_available()
        with pytest.raises(FeedbackError):
            gateway.evaluate(make_request())

    def test_empty_reply(self):
        gateway = FeedbackGateway(make_client("   "))
        with pytest.raises(FeedbackError):
            gateway.evaluate(make_request())

    def test_provider_exception_wrapped(self):
        client = Mock()
        client.create.side_effect = ConnectionError("network down")
        gateway = FeedbackGateway(client)

        with pytest.raises(FeedbackError) as excinfo:
            gateway.evaluate(make_request())
        assert not isinstance(excinfo.value, FeedbackTimeoutError)
        assert isinstance(excinfo.value.__cause__, ConnectionError)

    def test_client_timeout_becomes_feedback_timeout(self):
        """Test a client-side request timeout surfaces as FeedbackTimeoutError"""
        client = Mock()
        client.create.side_effect = LLMTimeoutError("no reply after 0.1s")
        gateway = FeedbackGateway(client)

        with pytest.raises(FeedbackTimeoutError) as excinfo:
            gateway.evaluate(make_request())
        assert isinstance(excinfo.value.__cause__, LLMTimeoutError)
        client.create.assert_called_once()


class TestMessageBuilding:
    """Tests for history conversion"""

    def test_history_roles(self):
        history = (
            Message(role=MessageRole.USER, content="schlafe"),
            Message(role=MessageRole.TUTOR, content="Напишите правильно."),
        )
        messages = FeedbackGateway(None).build_messages(make_request(history))

        assert [m['role'] for m in messages] == ['user', 'assistant', 'user']
        assert messages[0]['content'] == "schlafe"

    def test_leading_tutor_turn_dropped(self):
        """Test the conversation always opens with a user turn"""
        history = (Message(role=MessageRole.TUTOR, content="Guten Tag!"),)
        messages = FeedbackGateway(None).build_messages(make_request(history))

        assert len(messages) == 1
        assert messages[0]['role'] == 'user'

    def test_same_role_turns_merged(self):
        turns = [
            {'role': 'user', 'content': 'a'},
            {'role': 'user', 'content': 'b'},
            {'role': 'assistant', 'content': 'c'},
            {'role': 'assistant', 'content': 'd'},
        ]
        assert _normalize_turns(turns) == [
            {'role': 'user', 'content': 'a\n\nb'},
            {'role': 'assistant', 'content': 'c\n\nd'},
        ]

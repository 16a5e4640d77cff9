#!/usr/bin/env python3
"""
Tests for the lesson text parser.
"""

import pytest

from deutschlehrer.lessons import (
    ExerciseItem,
    Lesson,
    LessonFormatError,
    UNKNOWN_LESSON_NUMBER,
    VocabularyItem,
    parse_lesson_text,
)

from conftest import SAMPLE_LESSON


class TestLessonStructure:
    """Tests for section detection"""

    def test_parses_sample_lesson(self):
        """Test a well-formed lesson parses completely"""
        lesson = parse_lesson_text(SAMPLE_LESSON)

        assert isinstance(lesson, Lesson)
        assert lesson.number == '1'
        assert len(lesson.vocabulary) == 2
        assert len(lesson.exercises) == 2
        assert lesson.raw_content == SAMPLE_LESSON

    @pytest.mark.parametrize('header', ['Лексика:', 'Упражнения:', 'Ответы:'])
    def test_missing_section_fails(self, header):
        """Test that dropping any required header is a structural failure"""
        text = SAMPLE_LESSON.replace(header, '')

        with pytest.raises(LessonFormatError):
            parse_lesson_text(text)

    def test_empty_and_garbage_input_fail(self):
        """Test that text without sections never yields a lesson"""
        for text in ['', 'Hallo!', 'Урок 5:\nschlafen - спать']:
            with pytest.raises(LessonFormatError):
                parse_lesson_text(text)

    def test_non_text_input_fails(self):
        """Test unexpected input types are reported as format errors"""
        with pytest.raises(LessonFormatError):
            parse_lesson_text(None)

    def test_sections_out_of_order_fail(self):
        """Test answers before exercises is rejected"""
        text = "Лексика:\na - б\nОтветы:\n1. Ich schlafe.\nУпражнения:\n1. Я сплю.\n"

        with pytest.raises(LessonFormatError):
            parse_lesson_text(text)

    def test_headers_are_case_insensitive(self):
        """Test lower-case headers are recognized"""
        text = SAMPLE_LESSON.replace('Лексика:', 'лексика:').replace('Ответы:', 'ОТВЕТЫ:')

        lesson = parse_lesson_text(text)
        assert len(lesson.exercises) == 2

    def test_error_message_names_headers(self):
        """Test the learner-facing message lists the required headers"""
        with pytest.raises(LessonFormatError) as excinfo:
            parse_lesson_text('nothing here')

        assert 'Лексика:' in str(excinfo.value)
        assert 'Ответы:' in str(excinfo.value)

    def test_windows_line_endings(self):
        """Test CRLF input parses the same as LF input"""
        lesson = parse_lesson_text(SAMPLE_LESSON.replace('\n', '\r\n'))

        assert lesson.vocabulary[1] == VocabularyItem(german='gehen', russian='идти')
        assert lesson.exercises[1].german_answer == 'Er geht nach Hause.'


class TestLessonLabel:
    """Tests for the lesson number header"""

    def test_alphanumeric_label(self):
        """Test labels such as A1-3 are kept"""
        lesson = parse_lesson_text(SAMPLE_LESSON.replace('Урок 1:', 'Урок A1-3:'))
        assert lesson.number == 'A1-3'

    def test_missing_label_defaults(self):
        """Test a lesson without a label gets the unknown sentinel"""
        lesson = parse_lesson_text(SAMPLE_LESSON.replace('Урок 1:\n', ''))
        assert lesson.number == UNKNOWN_LESSON_NUMBER

    def test_fresh_id_per_parse(self):
        """Test every parse gets a new identifier"""
        first = parse_lesson_text(SAMPLE_LESSON)
        second = parse_lesson_text(SAMPLE_LESSON)
        assert first.id != second.id


class TestVocabulary:
    """Tests for vocabulary lines"""

    def test_round_trip_pairs(self):
        """Test 'schlafen - спать' style lines become ordered pairs"""
        lesson = parse_lesson_text(SAMPLE_LESSON)

        assert list(lesson.vocabulary) == [
            VocabularyItem(german='schlafen', russian='спать'),
            VocabularyItem(german='gehen', russian='идти'),
        ]

    def test_lines_without_separator_dropped(self):
        """Test that lines without a dash are silently skipped"""
        text = SAMPLE_LESSON.replace('gehen - идти', 'gehen - идти\nStarke Verben\nkommen-приходить')
        lesson = parse_lesson_text(text)

        assert [v.german for v in lesson.vocabulary] == ['schlafen', 'gehen', 'kommen']
        assert lesson.vocabulary[2].russian == 'приходить'

    def test_hyphenated_german_word(self):
        """Test a spaced dash separates even when the word contains a hyphen"""
        text = SAMPLE_LESSON.replace('gehen - идти', 'die E-Mail – электронное письмо')
        lesson = parse_lesson_text(text)

        assert lesson.vocabulary[1] == VocabularyItem(german='die E-Mail', russian='электронное письмо')

    def test_splits_on_first_separator(self):
        """Test only the first separator splits the line"""
        text = SAMPLE_LESSON.replace('gehen - идти', 'gehen - идти - ходить')
        lesson = parse_lesson_text(text)

        assert lesson.vocabulary[1] == VocabularyItem(german='gehen', russian='идти - ходить')

    def test_empty_side_dropped(self):
        """Test a pair with an empty side is skipped"""
        text = SAMPLE_LESSON.replace('gehen - идти', 'gehen -')
        lesson = parse_lesson_text(text)

        assert [v.german for v in lesson.vocabulary] == ['schlafen']

    def test_empty_vocabulary_section(self):
        """Test an empty vocabulary section still parses"""
        text = "Лексика:\nУпражнения:\n1. Я сплю.\nОтветы:\n1. Ich schlafe.\n"
        lesson = parse_lesson_text(text)

        assert lesson.vocabulary == ()
        assert len(lesson.exercises) == 1


class TestExercises:
    """Tests for exercise/answer pairing"""

    def test_positional_pairing(self):
        """Test exercise i pairs with answer i"""
        lesson = parse_lesson_text(SAMPLE_LESSON)

        assert lesson.exercises == (
            ExerciseItem(russian='Я сплю.', german_answer='Ich schlafe.'),
            ExerciseItem(russian='Он идет домой.', german_answer='Er geht nach Hause.'),
        )

    def test_enumeration_markers_removed(self):
        """Test different marker styles pair the same way"""
        text = (
            "Лексика:\nja - да\n"
            "Упражнения:\n1) Я сплю.\n2 - Ты спишь.\n3.Мы спим.\nОна спит.\n"
            "Ответы:\n1. Ich schlafe.\n2) Du schläfst.\n3 Wir schlafen.\nSie schläft.\n"
        )
        lesson = parse_lesson_text(text)

        assert [e.russian for e in lesson.exercises] == ['Я сплю.', 'Ты спишь.', 'Мы спим.', 'Она спит.']
        assert [e.german_answer for e in lesson.exercises] == [
            'Ich schlafe.', 'Du schläfst.', 'Wir schlafen.', 'Sie schläft.'
        ]

    def test_blank_lines_ignored(self):
        """Test blank lines do not shift the pairing"""
        text = SAMPLE_LESSON.replace('1. Я сплю.\n', '\n1. Я сплю.\n\n\n')
        lesson = parse_lesson_text(text)

        assert lesson.exercises[1].german_answer == 'Er geht nach Hause.'

    def test_mismatched_counts_fail(self):
        """Test more exercises than answers is rejected"""
        text = SAMPLE_LESSON.replace('2. Er geht nach Hause.\n', '')

        with pytest.raises(LessonFormatError) as excinfo:
            parse_lesson_text(text)
        assert '2 exercises but 1 answers' in str(excinfo.value)


class TestLessonSerialization:
    """Tests for Lesson.to_dict/from_dict"""

    def test_dict_round_trip(self):
        """Test a lesson survives serialization unchanged"""
        lesson = parse_lesson_text(SAMPLE_LESSON)
        assert Lesson.from_dict(lesson.to_dict()) == lesson

    def test_lesson_is_immutable(self):
        """Test parsed lessons cannot be modified"""
        lesson = parse_lesson_text(SAMPLE_LESSON)
        with pytest.raises(AttributeError):
            lesson.number = '2'

#!/usr/bin/env python3
"""
Prompt templates and tutor phrases for the lesson tutor.
Learner-facing text is Russian; German appears only in examples.
"""

# =============================================================================
# FEEDBACK SERVICE - judging one answer
# =============================================================================

SYSTEM_INSTRUCTION = (
    "You are a professional German language tutor named 'DeutschLehrer AI'. "
    "You strictly follow the provided lesson materials. You explain grammar "
    "clearly, focusing on verb conjugations and noun cases."
)

FEEDBACK_PROMPT = """CONTEXT: You are a professional German tutor.
STUDENT ANSWER: "{student_answer}"
OFFICIAL ANSWER KEY: "{official_answer}"
LESSON CONTEXT: {lesson_context}

TASK:
1. Verify if the student's answer is correct.
2. If there are synonyms or variations that are grammatically correct but differ from the answer key, acknowledge them as correct.
3. If there is an error (especially with strong verbs, case, or word order), explain the rule briefly and clearly in Russian.
4. If incorrect, ask the student to write the correct version ("Напишите правильно").
5. Keep the tone supportive and academic.
6. Your feedback should be in Russian, except for German examples.

Return ONLY JSON:
{{
  "correct": true/false,
  "feedback": "Your feedback to the student here"
}}"""

VOCABULARY_CONTEXT = "Проверка слова: {russian} -> {german}"
PRACTICE_CONTEXT = "Перевод предложения: {russian} -> {german}"


# =============================================================================
# TUTOR PHRASES - messages the session controller writes to the transcript
# =============================================================================

GREETING = "Guten Tag! Начнем работу над Уроком {number}."

FIRST_WORD_PROMPT = 'Сначала проверим слова. Как переводится на немецкий: "{russian}"?'

FIRST_EXERCISE_PROMPT = 'В этом уроке нет слов, начнем сразу с упражнений.\nПереведите: "{russian}"'

NEXT_WORD_PROMPT = 'Следующее слово: "{russian}"'

NEXT_EXERCISE_PROMPT = 'Переведите предложение: "{russian}"'

PRACTICE_TRANSITION = (
    'Отлично! Со словами закончили. Теперь перейдем к упражнениям.\n'
    'Переведите: "{russian}"'
)

COMPLETION = "Поздравляю! Мы закончили Урок {number}. Вы отлично поработали."

TECHNICAL_ERROR = "Извините, произошла техническая ошибка. Попробуйте еще раз."

STOPPED = "Урок {number} остановлен. Выберите урок, чтобы начать заново."

# Phrases whose presence marks feedback as "incorrect, try again"
INCORRECT_MARKERS = (
    'напишите правильно',
    'ошибка',
    'неправильно',
    'неверно',
)

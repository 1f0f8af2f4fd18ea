"""
Building, validating and storing quizzes.

A quiz is written as one unit: the quiz row, its questions and their options.
Everything here raises ``QuizMaster.exceptions`` errors with a message that can
be shown to the caller as is.
"""

import logging

from django.conf import settings
from django.db import transaction

from QuizMaster.exceptions import ValidationError, NotFound
from quiz.llm_integration import generate_questions
from quiz.models import (
    Quiz, Question, Option,
    MIN_QUESTIONS, MAX_QUESTIONS, MIN_TIME_LIMIT, MAX_TIME_LIMIT, OPTIONS_PER_QUESTION,
)
from quiz.utils import handle_uploaded_file, extract_text

logger = logging.getLogger("quiz_master")


def _is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)


def validate_text(value, label):
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{label} is required")
    return value.strip()


def validate_settings(quiz_settings):
    if not isinstance(quiz_settings, dict):
        raise ValidationError("Settings are required")

    num_questions = quiz_settings.get("numQuestions")
    time_limit = quiz_settings.get("timeLimit")

    if not _is_int(num_questions) or not MIN_QUESTIONS <= num_questions <= MAX_QUESTIONS:
        raise ValidationError(f"numQuestions must be an integer between {MIN_QUESTIONS} and {MAX_QUESTIONS}")

    if not _is_int(time_limit) or not MIN_TIME_LIMIT <= time_limit <= MAX_TIME_LIMIT:
        raise ValidationError(f"timeLimit must be an integer between {MIN_TIME_LIMIT} and {MAX_TIME_LIMIT}")

    return {"numQuestions": num_questions, "timeLimit": time_limit}


def validate_question(question, number):
    prefix = f"Question {number}"

    if not isinstance(question, dict):
        raise ValidationError(f"{prefix}: must be an object")

    text = question.get("question")
    if not isinstance(text, str) or not text.strip():
        raise ValidationError(f"{prefix}: question text is required")

    options = question.get("options")
    if not isinstance(options, list) or len(options) != OPTIONS_PER_QUESTION:
        raise ValidationError(f"{prefix}: each question must have exactly {OPTIONS_PER_QUESTION} options")

    if not all(isinstance(option, str) and option.strip() for option in options):
        raise ValidationError(f"{prefix}: options must be non-empty strings")

    if len(set(options)) != len(options):
        raise ValidationError(f"{prefix}: options must be distinct")

    correct_answer = question.get("correctAnswer")
    if correct_answer not in options:
        raise ValidationError(f"{prefix}: correctAnswer must be one of the options")

    explanation = question.get("explanation") or ""
    if not isinstance(explanation, str):
        raise ValidationError(f"{prefix}: explanation must be text")

    return {
        "question": text.strip(),
        "options": list(options),
        "correctAnswer": correct_answer,
        "explanation": explanation,
    }


def validate_questions(questions):
    if not isinstance(questions, list):
        raise ValidationError("Questions must be a list")

    if not questions:
        raise ValidationError("Quiz must have at least one question")

    return [validate_question(question, number) for number, question in enumerate(questions, start=1)]


def _save_questions(quiz, questions):
    for number, item in enumerate(questions, start=1):
        question = Question.objects.create(
            quiz=quiz,
            question_text=item["question"],
            question_number=number,
            explanation=item["explanation"],
        )
        Option.objects.bulk_create([
            Option(question=question, option_text=option_text, option_number=option_number,
                   correct=option_text == item["correctAnswer"])
            for option_number, option_text in enumerate(item["options"], start=1)
        ])


@transaction.atomic
def _save_quiz(user, title, topic, quiz_settings, questions):
    quiz = Quiz.objects.create(
        title=title,
        topic=topic,
        num_questions=quiz_settings["numQuestions"],
        time_limit=quiz_settings["timeLimit"],
        created_by=user,
    )
    _save_questions(quiz, questions)
    logger.info(f"Saved quiz {quiz.pk} with {len(questions)} questions for user {user.pk}")
    return get_quiz(quiz.pk)


def create_quiz(user, title, topic, quiz_settings, questions=None, generator=None):
    title = validate_text(title, "Title")
    topic = validate_text(topic, "Topic")
    quiz_settings = validate_settings(quiz_settings)

    if questions is None:
        result = generate_questions(topic, settings.QUIZ_DEFAULT_DIFFICULTY, quiz_settings["numQuestions"],
                                    generator=generator)
        if result.warning:
            logger.warning(f"Quiz {title!r} was created from fallback questions: {result.warning}")
        questions = result.to_dict()["questions"]

    questions = validate_questions(questions)

    return _save_quiz(user, title, topic, quiz_settings, questions)


def create_quiz_from_file(user, title, topic, num_questions, uploaded_file, difficulty=None, generator=None):
    """
    Create a quiz from the text of an uploaded document.

    Returns the quiz and the generator warning, if there was one. The upload
    never outlives this call.
    """
    title = validate_text(title, "Title")
    topic = validate_text(topic, "Topic")
    quiz_settings = validate_settings({
        "numQuestions": num_questions,
        "timeLimit": settings.QUIZ_UPLOAD_DEFAULT_TIME_LIMIT,
    })

    with handle_uploaded_file(uploaded_file) as file_path:
        source_text = extract_text(file_path, getattr(uploaded_file, "content_type", None))

        result = generate_questions(topic, difficulty or settings.QUIZ_DEFAULT_DIFFICULTY,
                                    quiz_settings["numQuestions"], source_text=source_text, generator=generator)
        questions = validate_questions(result.to_dict()["questions"])

        quiz = _save_quiz(user, title, topic, quiz_settings, questions)

    return quiz, result.warning


def get_quiz(quiz_id):
    try:
        return Quiz.objects.prefetch_related("questions__options").get(pk=quiz_id)
    except Quiz.DoesNotExist:
        raise NotFound("Quiz not found")


def list_quizzes():
    return Quiz.objects.prefetch_related("questions__options").all()


def list_quizzes_by_user(user):
    return Quiz.objects.prefetch_related("questions__options").filter(created_by=user)


def _get_owned_quiz(quiz_id, owner):
    try:
        return Quiz.objects.get(pk=quiz_id, created_by=owner)
    except Quiz.DoesNotExist:
        logger.info(f"Quiz {quiz_id} not found for user {owner.pk}")
        raise NotFound("Quiz not found")


@transaction.atomic
def update_quiz(quiz_id, owner, patch):
    """
    Apply ``patch`` to a quiz owned by ``owner``.

    ``settings`` is merged into the current settings, ``questions`` replaces
    the whole list. Keys the caller may not change are ignored.
    """
    if not isinstance(patch, dict):
        raise ValidationError("Request body must be a JSON object")

    quiz = _get_owned_quiz(quiz_id, owner)

    if "title" in patch:
        quiz.title = validate_text(patch["title"], "Title")

    if "topic" in patch:
        quiz.topic = validate_text(patch["topic"], "Topic")

    if "settings" in patch:
        if not isinstance(patch["settings"], dict):
            raise ValidationError("Settings are required")
        merged = {"numQuestions": quiz.num_questions, "timeLimit": quiz.time_limit, **patch["settings"]}
        quiz_settings = validate_settings(merged)
        quiz.num_questions = quiz_settings["numQuestions"]
        quiz.time_limit = quiz_settings["timeLimit"]

    questions = None
    if "questions" in patch:
        questions = validate_questions(patch["questions"])

    quiz.save()

    if questions is not None:
        quiz.questions.all().delete()
        _save_questions(quiz, questions)

    logger.info(f"Updated quiz {quiz.pk}")
    return get_quiz(quiz.pk)


def delete_quiz(quiz_id, owner):
    quiz = _get_owned_quiz(quiz_id, owner)
    quiz.delete()
    logger.info(f"Deleted quiz {quiz_id}")

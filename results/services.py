import logging

from django.conf import settings
from django.db import transaction
from django.db.models import Count

from QuizMaster.exceptions import ValidationError, NotFound
from quiz.models import Quiz
from results.models import QuizResult, ResultAnswer

logger = logging.getLogger("quiz_master")

RECENT_SCORES = 5


def _resolve_quiz(quiz_id):
    if isinstance(quiz_id, bool) or not isinstance(quiz_id, int):
        raise ValidationError("Quiz not found")
    try:
        return Quiz.objects.prefetch_related("questions__options").get(pk=quiz_id)
    except Quiz.DoesNotExist:
        raise ValidationError("Quiz not found")


def _validate_answer(answer, number):
    prefix = f"Answer {number}"

    if not isinstance(answer, dict):
        raise ValidationError(f"{prefix}: must be an object")

    question = answer.get("question")
    if not isinstance(question, str) or not question:
        raise ValidationError(f"{prefix}: question is required")

    user_answer = answer.get("userAnswer", "")
    if user_answer is None:
        user_answer = ""
    if not isinstance(user_answer, str):
        raise ValidationError(f"{prefix}: userAnswer must be text")

    correct_answer = answer.get("correctAnswer")
    if not isinstance(correct_answer, str):
        raise ValidationError(f"{prefix}: correctAnswer is required")

    return {
        "question": question,
        "userAnswer": user_answer,
        "correctAnswer": correct_answer,
        "isCorrect": answer.get("isCorrect") is True,
    }


def _recompute_correctness(quiz, answers):
    """Judge each answer against the stored quiz, matching questions by text."""
    stored = {question.question_text: question.correct_answer for question in quiz.questions.all()}

    for answer in answers:
        correct_answer = stored.get(answer["question"])
        if correct_answer is None:
            answer["isCorrect"] = False
            continue
        answer["correctAnswer"] = correct_answer
        answer["isCorrect"] = answer["userAnswer"] == correct_answer

    return answers


def submit_attempt(user, quiz_id, answers, time_taken):
    """
    Store one completed attempt.

    The score is always counted here from the ``isCorrect`` flags. The flags
    themselves come from the caller unless QUIZ_RESULTS_RECOMPUTE_CORRECTNESS
    is set, in which case the stored quiz decides.
    """
    if answers is None:
        raise ValidationError("Answers are required")

    if not isinstance(answers, list):
        raise ValidationError("Answers must be a list")

    quiz = _resolve_quiz(quiz_id)

    if isinstance(time_taken, bool) or not isinstance(time_taken, int) or time_taken < 0:
        raise ValidationError("timeTaken must be a non-negative integer")

    answers = [_validate_answer(answer, number) for number, answer in enumerate(answers, start=1)]

    if settings.QUIZ_RESULTS_RECOMPUTE_CORRECTNESS:
        answers = _recompute_correctness(quiz, answers)

    score = sum(1 for answer in answers if answer["isCorrect"])

    with transaction.atomic():
        result = QuizResult.objects.create(
            quiz=quiz,
            user=user,
            score=score,
            total_questions=len(answers),
            time_taken=time_taken,
        )
        ResultAnswer.objects.bulk_create([
            ResultAnswer(
                result=result,
                answer_number=number,
                question_text=answer["question"],
                user_answer=answer["userAnswer"],
                correct_answer=answer["correctAnswer"],
                is_correct=answer["isCorrect"],
            )
            for number, answer in enumerate(answers, start=1)
        ])

    logger.info(f"Stored result {result.pk} for user {user.pk}: {score}/{len(answers)} on quiz {quiz.pk}")
    return result


def quizzes_for_results(results):
    """Map quiz id to quiz for ``results``; deleted quizzes are simply absent."""
    return Quiz.objects.in_bulk({result.quiz_id for result in results})


def list_for_user(user):
    return list(QuizResult.objects.filter(user=user).prefetch_related("answers"))


def get_by_id(result_id, user):
    try:
        return QuizResult.objects.prefetch_related("answers").get(pk=result_id, user=user)
    except QuizResult.DoesNotExist:
        logger.info(f"Result {result_id} not found for user {user.pk}")
        raise NotFound("Result not found")


def analytics_for_user(user):
    results = list(QuizResult.objects.filter(user=user).order_by("created_at", "id"))
    quizzes = quizzes_for_results(results)

    if results:
        ratios = [result.score / result.total_questions for result in results if result.total_questions]
        average = round(sum(ratios) * 100 / len(results), 2)
    else:
        average = 0

    user_quizzes = Quiz.objects.filter(created_by=user)
    topic_distribution = [
        {"topic": row["topic"], "count": row["count"]}
        for row in user_quizzes.values("topic").annotate(count=Count("id")).order_by("-count", "topic")
    ]

    score_over_time = [
        {
            "resultId": result.pk,
            "quizId": result.quiz_id,
            "createdAt": result.created_at.isoformat(),
            "score": result.score,
            "totalQuestions": result.total_questions,
            "percentage": result.percentage,
        }
        for result in results
    ]

    recent_scores = [
        {
            "resultId": result.pk,
            "quizTitle": quizzes[result.quiz_id].title if result.quiz_id in quizzes else None,
            "percentage": result.percentage,
            "createdAt": result.created_at.isoformat(),
        }
        for result in reversed(results[-RECENT_SCORES:])
    ]

    return {
        "averageScorePercent": average,
        "totalQuizzes": user_quizzes.count(),
        "totalAttempts": len(results),
        "topicDistribution": topic_distribution,
        "scoreOverTime": score_over_time,
        "recentScores": recent_scores,
    }

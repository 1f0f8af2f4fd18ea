from quiz.serializers import quiz_to_dict


def answer_to_dict(answer):
    return {
        "question": answer.question_text,
        "userAnswer": answer.user_answer,
        "correctAnswer": answer.correct_answer,
        "isCorrect": answer.is_correct,
    }


def result_to_dict(result, quiz=None):
    """``quiz`` is None when the quiz has been deleted since the attempt."""
    return {
        "id": result.pk,
        "quizId": result.quiz_id,
        "quiz": quiz_to_dict(quiz, include_questions=False) if quiz is not None else None,
        "user": result.user_id,
        "score": result.score,
        "totalQuestions": result.total_questions,
        "timeTaken": result.time_taken,
        "percentage": result.percentage,
        "answers": [answer_to_dict(answer) for answer in result.answers.all()],
        "createdAt": result.created_at.isoformat(),
    }

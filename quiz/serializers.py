def question_to_dict(question):
    options = list(question.options.all())
    correct = next((option.option_text for option in options if option.correct), None)
    return {
        "id": question.pk,
        "question": question.question_text,
        "options": [option.option_text for option in options],
        "correctAnswer": correct,
        "explanation": question.explanation,
    }


def quiz_to_dict(quiz, include_questions=True):
    data = {
        "id": quiz.pk,
        "title": quiz.title,
        "topic": quiz.topic,
        "settings": {
            "numQuestions": quiz.num_questions,
            "timeLimit": quiz.time_limit,
        },
        "createdBy": quiz.created_by_id,
        "createdAt": quiz.created_at.isoformat(),
        "updatedAt": quiz.updated_at.isoformat(),
    }
    if include_questions:
        data["questions"] = [question_to_dict(question) for question in quiz.questions.all()]
    return data

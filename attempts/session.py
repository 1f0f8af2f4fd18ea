"""
State machine for one timed pass through a quiz.

The server keeps nothing between calls: the caller holds the ``AttemptState``
and sends it back with every transition, so dropping it abandons the attempt.

    LOADING -> IN_PROGRESS -> COMPLETING -> COMPLETED
                                   |  ^
                                   v  | retry
                                 FAILED

An attempt ends the same way whether the last question was answered or the
clock ran out: every quiz question gets an answer row, unanswered ones with an
empty ``userAnswer``.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from QuizMaster.exceptions import AttemptStateError, EmptyQuiz, QuizMasterError, ValidationError
from quiz.models import MIN_TIME_LIMIT, MAX_TIME_LIMIT

logger = logging.getLogger("quiz_master")


class AttemptStatus(str, Enum):
    LOADING = "loading"
    IN_PROGRESS = "in_progress"
    COMPLETING = "completing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class AttemptQuestion:
    id: int
    question: str
    options: List[str]
    correct_answer: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "question": self.question,
            "options": list(self.options),
            "correctAnswer": self.correct_answer,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AttemptQuestion":
        return cls(
            id=int(data["id"]),
            question=str(data["question"]),
            options=[str(option) for option in data["options"]],
            correct_answer=str(data["correctAnswer"]),
        )


@dataclass
class AttemptState:
    """Everything needed to resume an attempt on the next call.

    Attributes:
        quiz_id: quiz being taken
        status: where the attempt is in its lifecycle
        questions: snapshot of the quiz questions taken when the attempt started
        question_index: index of the question being shown
        answers: ``{"questionId", "answer"}`` pairs in the order they were given
        elapsed_seconds: seconds counted by the ticker so far
        time_limit_seconds: elapsed time at which the attempt completes on its own
        score: number of correct answers, set once the attempt is scored
        result_id: id of the stored result once submission succeeded
        error: why the last submission failed
    """

    quiz_id: int
    status: AttemptStatus = AttemptStatus.LOADING
    questions: List[AttemptQuestion] = field(default_factory=list)
    question_index: int = 0
    answers: List[Dict[str, Any]] = field(default_factory=list)
    elapsed_seconds: int = 0
    time_limit_seconds: int = 0
    score: Optional[int] = None
    result_id: Optional[int] = None
    error: Optional[str] = None

    @property
    def current_question(self) -> Optional[AttemptQuestion]:
        if self.status != AttemptStatus.IN_PROGRESS or self.question_index >= len(self.questions):
            return None
        return self.questions[self.question_index]

    @property
    def remaining_seconds(self) -> int:
        return max(self.time_limit_seconds - self.elapsed_seconds, 0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "quizId": self.quiz_id,
            "status": self.status.value,
            "questions": [question.to_dict() for question in self.questions],
            "questionIndex": self.question_index,
            "answers": [dict(answer) for answer in self.answers],
            "elapsedSeconds": self.elapsed_seconds,
            "timeLimitSeconds": self.time_limit_seconds,
            "remainingSeconds": self.remaining_seconds,
            "score": self.score,
            "resultId": self.result_id,
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AttemptState":
        """Rebuild a state sent back by the caller, rejecting anything malformed."""
        try:
            state = cls(
                quiz_id=int(data["quizId"]),
                status=AttemptStatus(data["status"]),
                questions=[AttemptQuestion.from_dict(question) for question in data["questions"]],
                question_index=int(data.get("questionIndex", 0)),
                answers=[
                    {"questionId": int(answer["questionId"]), "answer": str(answer["answer"])}
                    for answer in data.get("answers", [])
                ],
                elapsed_seconds=int(data.get("elapsedSeconds", 0)),
                time_limit_seconds=int(data["timeLimitSeconds"]),
                score=data.get("score"),
                result_id=data.get("resultId"),
                error=data.get("error"),
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.info(f"Rejected attempt state: {e!r}")
            raise ValidationError("Invalid attempt state")

        if state.elapsed_seconds < 0 or state.question_index < 0:
            raise ValidationError("Invalid attempt state")

        if not MIN_TIME_LIMIT * 60 <= state.time_limit_seconds <= MAX_TIME_LIMIT * 60:
            logger.info(f"Rejected attempt state with a time limit of {state.time_limit_seconds}s")
            raise ValidationError("Invalid attempt state")

        return state


def snapshot_questions(quiz) -> List[AttemptQuestion]:
    return [
        AttemptQuestion(
            id=question.pk,
            question=question.question_text,
            options=[option.option_text for option in question.options.all()],
            correct_answer=question.correct_answer or "",
        )
        for question in quiz.questions.all()
    ]


def build_answers(state: AttemptState) -> List[Dict[str, Any]]:
    """One answer row per quiz question, in quiz order."""
    given = {}
    for answer in state.answers:
        given.setdefault(answer["questionId"], answer["answer"])

    answers = []
    for question in state.questions:
        user_answer = given.get(question.id, "")
        answers.append({
            "question": question.question,
            "userAnswer": user_answer,
            "correctAnswer": question.correct_answer,
            "isCorrect": user_answer == question.correct_answer,
        })
    return answers


class QuizSessionEngine:
    """
    Drives ``AttemptState`` transitions.

    ``load_quiz(quiz_id)`` returns a quiz or raises ``NotFound``.
    ``submit_result(quiz_id, answers, time_taken)`` stores the scored attempt
    and returns the new result id, raising a ``QuizMasterError`` on failure.
    """

    def __init__(self, load_quiz: Callable, submit_result: Callable):
        self.load_quiz = load_quiz
        self.submit_result = submit_result

    def _require(self, state: AttemptState, *statuses: AttemptStatus):
        if state.status not in statuses:
            raise AttemptStateError(f"Attempt is {state.status.value}")

    def start(self, quiz_id: int) -> AttemptState:
        state = AttemptState(quiz_id=quiz_id)

        quiz = self.load_quiz(quiz_id)
        state.questions = snapshot_questions(quiz)

        if not state.questions:
            raise EmptyQuiz()

        state.time_limit_seconds = quiz.time_limit * 60
        state.status = AttemptStatus.IN_PROGRESS

        logger.info(f"Started attempt on quiz {quiz_id} ({len(state.questions)} questions, "
                    f"{state.time_limit_seconds}s)")
        return state

    def tick(self, state: AttemptState, seconds: int = 1) -> AttemptState:
        self._require(state, AttemptStatus.IN_PROGRESS)

        state.elapsed_seconds = min(state.elapsed_seconds + seconds, state.time_limit_seconds)

        if state.elapsed_seconds >= state.time_limit_seconds:
            logger.info(f"Time is up on quiz {state.quiz_id} after {len(state.answers)} answers")
            state.status = AttemptStatus.COMPLETING
            return self.complete(state)

        return state

    def answer(self, state: AttemptState, selected: Optional[str]) -> AttemptState:
        self._require(state, AttemptStatus.IN_PROGRESS)

        if not isinstance(selected, str) or not selected:
            raise AttemptStateError("An answer must be selected")

        question = state.current_question
        if question is None:
            raise AttemptStateError("There is no question left to answer")

        if selected not in question.options:
            raise AttemptStateError("The answer must be one of the question's options")

        state.answers.append({"questionId": question.id, "answer": selected})
        state.question_index += 1

        if state.question_index >= len(state.questions):
            state.status = AttemptStatus.COMPLETING
            return self.complete(state)

        return state

    def complete(self, state: AttemptState) -> AttemptState:
        """Score the attempt and submit it. Also used to retry a failed submission."""
        self._require(state, AttemptStatus.COMPLETING, AttemptStatus.FAILED)

        state.status = AttemptStatus.COMPLETING
        answers = build_answers(state)
        state.score = sum(1 for answer in answers if answer["isCorrect"])

        try:
            state.result_id = self.submit_result(state.quiz_id, answers, state.elapsed_seconds)
        except QuizMasterError as e:
            logger.error(f"Could not submit attempt on quiz {state.quiz_id}: {e.message}")
            state.status = AttemptStatus.FAILED
            state.error = e.public_message
            return state

        state.status = AttemptStatus.COMPLETED
        state.error = None
        logger.info(f"Completed attempt on quiz {state.quiz_id}: {state.score}/{len(answers)}")
        return state

import logging

from django.db import DatabaseError, transaction
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from accounts.decorators import token_required
from accounts.utils import load_json_body
from attempts.session import AttemptState, QuizSessionEngine
from QuizMaster.exceptions import ValidationError, UpstreamFailure
from quiz.services import get_quiz
from results.services import submit_attempt

logger = logging.getLogger("quiz_master")


def make_engine(user):
    def submit_result(quiz_id, answers, time_taken):
        try:
            with transaction.atomic():
                result = submit_attempt(user, quiz_id, answers, time_taken)
        except DatabaseError as e:
            logger.error(f"Storing result for user {user.pk} failed: {e}")
            raise UpstreamFailure(str(e)) from e
        return result.pk

    return QuizSessionEngine(load_quiz=get_quiz, submit_result=submit_result)


def _state_from(post_data):
    state = post_data.get("state")
    if not isinstance(state, dict):
        raise ValidationError("Attempt state is required")
    return AttemptState.from_dict(state)


@csrf_exempt
@require_POST
@token_required
def start(request):
    post_data = load_json_body(request)

    quiz_id = post_data.get("quizId")
    if isinstance(quiz_id, bool) or not isinstance(quiz_id, int):
        raise ValidationError("quizId is required")

    state = make_engine(request.user).start(quiz_id)

    return JsonResponse(state.to_dict())


@csrf_exempt
@require_POST
@token_required
def answer(request):
    post_data = load_json_body(request)

    state = make_engine(request.user).answer(_state_from(post_data), post_data.get("answer"))

    return JsonResponse(state.to_dict())


@csrf_exempt
@require_POST
@token_required
def tick(request):
    post_data = load_json_body(request)

    seconds = post_data.get("seconds", 1)
    if isinstance(seconds, bool) or not isinstance(seconds, int) or seconds < 0:
        raise ValidationError("seconds must be a non-negative integer")

    state = make_engine(request.user).tick(_state_from(post_data), seconds)

    return JsonResponse(state.to_dict())


@csrf_exempt
@require_POST
@token_required
def complete(request):
    post_data = load_json_body(request)

    state = make_engine(request.user).complete(_state_from(post_data))

    return JsonResponse(state.to_dict())

import logging

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods

from accounts.decorators import token_required
from accounts.utils import load_json_body
from results import services
from results.serializers import result_to_dict

logger = logging.getLogger("quiz_master")


@csrf_exempt
@require_http_methods(["GET", "POST"])
@token_required
def quiz_results(request):
    if request.method == "GET":
        results = services.list_for_user(request.user)
        quizzes = services.quizzes_for_results(results)
        return JsonResponse([result_to_dict(result, quizzes.get(result.quiz_id)) for result in results], safe=False)

    post_data = load_json_body(request)

    result = services.submit_attempt(
        request.user,
        quiz_id=post_data.get("quizId"),
        answers=post_data.get("answers"),
        time_taken=post_data.get("timeTaken"),
    )

    return JsonResponse(result_to_dict(result, result.quiz), status=201)


@require_GET
@token_required
def analytics(request):
    return JsonResponse(services.analytics_for_user(request.user))


@require_GET
@token_required
def result_detail(request, pk):
    result = services.get_by_id(pk, request.user)
    quizzes = services.quizzes_for_results([result])
    return JsonResponse(result_to_dict(result, quizzes.get(result.quiz_id)))

import logging

from django.conf import settings
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST, require_http_methods

from accounts.decorators import token_required
from accounts.utils import load_json_body, form_errors_to_dict, first_form_error
from QuizMaster.exceptions import ValidationError, UnsupportedType
from quiz import services
from quiz.forms import QuizUploadForm
from quiz.llm_integration import generate_questions
from quiz.models import MIN_QUESTIONS, MAX_QUESTIONS
from quiz.serializers import quiz_to_dict

logger = logging.getLogger("quiz_master")

DIFFICULTIES = ("easy", "medium", "hard")


@csrf_exempt
@require_POST
@token_required
def generate_quiz(request):
    post_data = load_json_body(request)

    topic = post_data.get("topic")
    if not isinstance(topic, str) or not topic.strip():
        raise ValidationError("Topic is required")

    num_questions = post_data.get("numQuestions", 10)
    if isinstance(num_questions, bool) or not isinstance(num_questions, int) \
            or not MIN_QUESTIONS <= num_questions <= MAX_QUESTIONS:
        raise ValidationError(f"numQuestions must be an integer between {MIN_QUESTIONS} and {MAX_QUESTIONS}")

    difficulty = post_data.get("difficulty") or settings.QUIZ_DEFAULT_DIFFICULTY
    if difficulty not in DIFFICULTIES:
        raise ValidationError(f"difficulty must be one of {', '.join(DIFFICULTIES)}")

    result = generate_questions(topic.strip(), difficulty, num_questions)

    return JsonResponse(result.to_dict())


@csrf_exempt
@require_POST
@token_required
def upload_quiz(request):
    form = QuizUploadForm(request.POST, request.FILES)

    if not form.is_valid():
        if form.has_error("file", code="invalid_extension"):
            raise UnsupportedType()
        raise ValidationError(first_form_error(form), errors=form_errors_to_dict(form))

    quiz, warning = services.create_quiz_from_file(
        request.user,
        title=form.cleaned_data["title"],
        topic=form.cleaned_data["topic"],
        num_questions=form.cleaned_data["numQuestions"],
        uploaded_file=form.cleaned_data["file"],
        difficulty=form.cleaned_data["difficulty"],
    )

    data = quiz_to_dict(quiz)
    if warning:
        data["warning"] = warning

    return JsonResponse(data, status=201)


@csrf_exempt
@require_http_methods(["GET", "POST"])
@token_required
def quizzes(request):
    if request.method == "GET":
        return JsonResponse([quiz_to_dict(quiz) for quiz in services.list_quizzes()], safe=False)

    post_data = load_json_body(request)

    quiz = services.create_quiz(
        request.user,
        title=post_data.get("title"),
        topic=post_data.get("topic"),
        quiz_settings=post_data.get("settings"),
        questions=post_data.get("questions"),
    )

    return JsonResponse(quiz_to_dict(quiz), status=201)


@require_GET
@token_required
def user_quizzes(request):
    return JsonResponse([quiz_to_dict(quiz) for quiz in services.list_quizzes_by_user(request.user)], safe=False)


@csrf_exempt
@require_http_methods(["GET", "PUT", "DELETE"])
@token_required
def quiz_detail(request, pk):
    if request.method == "GET":
        return JsonResponse(quiz_to_dict(services.get_quiz(pk)))

    if request.method == "DELETE":
        services.delete_quiz(pk, request.user)
        return JsonResponse({"message": "Quiz deleted successfully"})

    quiz = services.update_quiz(pk, request.user, load_json_body(request))

    return JsonResponse(quiz_to_dict(quiz))

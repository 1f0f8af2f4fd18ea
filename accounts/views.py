import logging

from django.contrib.auth import authenticate, get_user_model
from django.db import transaction, IntegrityError
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST, require_http_methods

from accounts.decorators import token_required
from accounts.forms import SignUpForm, LoginForm, ProfileUpdateForm
from accounts.tokens import bearer_tokens
from accounts.utils import user_to_dict, load_json_body, form_errors_to_dict, first_form_error
from QuizMaster.exceptions import ValidationError, Unauthenticated

logger = logging.getLogger("quiz_master")

User = get_user_model()

DUPLICATE_EMAIL_MESSAGE = "A user with that email already exists."


@csrf_exempt
@require_POST
def register(request):
    form = SignUpForm(load_json_body(request))

    if not form.is_valid():
        raise ValidationError(first_form_error(form), errors=form_errors_to_dict(form))

    try:
        with transaction.atomic():
            user = User.objects.create_user(
                username=form.cleaned_data["email"],
                email=form.cleaned_data["email"],
                password=form.cleaned_data["password"],
                first_name=form.cleaned_data["name"],
            )
    except IntegrityError as e:
        # Two registrations raced past the form check
        logger.error(e)
        raise ValidationError(DUPLICATE_EMAIL_MESSAGE)

    logger.info(f"Registered user {user.pk}")

    return JsonResponse({"token": bearer_tokens.issue(user), "user": user_to_dict(user)}, status=201)


@csrf_exempt
@require_POST
def login(request):
    form = LoginForm(load_json_body(request))

    if not form.is_valid():
        raise ValidationError(first_form_error(form), errors=form_errors_to_dict(form))

    user = authenticate(request, email=form.cleaned_data["email"], password=form.cleaned_data["password"])

    if user is None:
        raise Unauthenticated("Invalid email or password", reason="bad credentials")

    return JsonResponse({"token": bearer_tokens.issue(user), "user": user_to_dict(user)})


@csrf_exempt
@require_http_methods(["GET", "PATCH", "DELETE"])
@token_required
def me(request):
    user = request.user

    if request.method == "GET":
        return JsonResponse(user_to_dict(user))

    if request.method == "DELETE":
        # Quizzes and results keep pointing at the removed id
        user_id = user.pk
        user.delete()
        logger.info(f"Deleted user {user_id}")
        return JsonResponse({"message": "User deleted"})

    post_data = load_json_body(request)

    allowed_updates = {"name", "password", "currentPassword"}
    if not post_data or not set(post_data).issubset(allowed_updates):
        raise ValidationError("Invalid updates")

    form = ProfileUpdateForm(user, post_data)

    if not form.is_valid():
        raise ValidationError(first_form_error(form), errors=form_errors_to_dict(form))

    if "password" in post_data:
        if not user.check_password(form.cleaned_data["currentPassword"]):
            raise Unauthenticated("Current password is incorrect", reason="wrong current password")
        user.set_password(form.cleaned_data["password"])

    if "name" in post_data:
        user.first_name = form.cleaned_data["name"]

    user.save()

    return JsonResponse(user_to_dict(user))

import json
import logging

from QuizMaster.exceptions import ValidationError

logger = logging.getLogger("quiz_master")


def user_to_dict(user):
    return {
        "id": user.pk,
        "name": user.first_name,
        "email": user.email,
        "createdAt": user.date_joined.isoformat(),
    }


def load_json_body(request):
    """Decode a JSON object request body or raise ValidationError."""
    try:
        data = json.loads(request.body.decode("utf-8") or "{}")
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error(e)
        raise ValidationError("Invalid JSON")

    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")

    return data


def form_errors_to_dict(form):
    return {field: [str(message) for message in messages] for field, messages in form.errors.items()}


def first_form_error(form):
    for messages in form.errors.values():
        if messages:
            return str(messages[0])
    return "Validation error"

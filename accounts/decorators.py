import logging
from functools import wraps

from django.contrib.auth import get_user_model

from accounts.tokens import bearer_tokens, InvalidCredential, ExpiredCredential
from QuizMaster.exceptions import Unauthenticated, InternalError

logger = logging.getLogger("quiz_master")

User = get_user_model()

AUTH_REQUIRED_MESSAGE = "Authentication required"
AUTH_FAILED_MESSAGE = "Authentication failed"


def resolve_bearer_user(request):
    """
    Resolve the Authorization header of ``request`` to an active user.

    Every authentication problem raises ``Unauthenticated`` with the same
    public message; the actual reason is only logged.
    """
    header = request.headers.get("Authorization", "")
    token = header[len("Bearer "):].strip() if header.startswith("Bearer ") else ""

    if not token:
        logger.warning(f"Rejected {request.method} {request.path}: no bearer credential")
        raise Unauthenticated(AUTH_REQUIRED_MESSAGE, reason="missing")

    try:
        user_id = bearer_tokens.verify(token)
    except ExpiredCredential:
        logger.warning(f"Rejected {request.method} {request.path}: expired credential")
        raise Unauthenticated(AUTH_FAILED_MESSAGE, reason="expired")
    except InvalidCredential:
        logger.warning(f"Rejected {request.method} {request.path}: invalid credential")
        raise Unauthenticated(AUTH_FAILED_MESSAGE, reason="invalid")

    try:
        return User.objects.get(pk=user_id, is_active=True)
    except User.DoesNotExist:
        logger.warning(f"Rejected {request.method} {request.path}: user {user_id} no longer exists")
        raise Unauthenticated(AUTH_FAILED_MESSAGE, reason="unknown user")


def token_required(view_func):
    """Attach the user behind the bearer credential to ``request.user``."""

    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        try:
            request.user = resolve_bearer_user(request)
        except Unauthenticated:
            raise
        except Exception as e:
            logger.exception(f"Error while resolving credential: {e}")
            raise InternalError(str(e)) from e

        return view_func(request, *args, **kwargs)

    return wrapper

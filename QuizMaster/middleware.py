import logging

from django.core.exceptions import PermissionDenied
from django.http import JsonResponse, Http404

from QuizMaster.exceptions import QuizMasterError, InternalError

logger = logging.getLogger("quiz_master")


class JsonErrorMiddleware:
    """
    Turn exceptions escaping a view into JSON error responses.

    Errors from the taxonomy keep their status code and public message.
    Anything else is logged in full and answered with a generic 500 so no
    internal detail reaches the caller. Http404 and friends are left to Django.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        return self.get_response(request)

    def process_exception(self, request, exception):
        if isinstance(exception, QuizMasterError):
            if exception.status_code >= 500:
                logger.error(f"{request.method} {request.path} failed: {exception.message}")
            else:
                logger.info(f"{request.method} {request.path} -> {exception.status_code}: {exception.message}")
            return JsonResponse(exception.to_dict(), status=exception.status_code)

        if isinstance(exception, (Http404, PermissionDenied)):
            return None

        logger.exception(f"Unhandled error on {request.method} {request.path}: {exception}")
        error = InternalError(str(exception))
        return JsonResponse(error.to_dict(), status=error.status_code)

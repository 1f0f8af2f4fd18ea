import logging

from django.conf import settings
from django.db import connection, DatabaseError
from django.http import JsonResponse
from django.utils import timezone
from django.views.decorators.http import require_GET

logger = logging.getLogger("quiz_master")


@require_GET
def health_check(request):
    try:
        connection.ensure_connection()
    except DatabaseError as e:
        logger.error(f"Database unreachable during health check: {e}")
        db_status = "disconnected"
    else:
        db_status = "connected"

    return JsonResponse({
        "status": "healthy",
        "timestamp": timezone.now().isoformat(),
        "environment": settings.DJANGO_ENV,
        "dbStatus": db_status,
    })

from django.contrib import admin
from django.urls import path, include

from QuizMaster.views import health_check

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/health", health_check, name="health"),
    path("api/auth/", include("accounts.urls")),
    path("api/users/", include("accounts.user_urls")),
    path("api/quizzes/", include("quiz.urls")),
    path("api/quiz-results/", include("results.urls")),
    path("api/attempts/", include("attempts.urls")),
]

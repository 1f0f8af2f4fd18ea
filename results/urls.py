from django.urls import path

from . import views

urlpatterns = [
    path("", views.quiz_results, name="quiz_results"),
    path("analytics", views.analytics, name="result_analytics"),
    path("<int:pk>", views.result_detail, name="result_detail"),
]

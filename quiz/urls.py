from django.urls import path

from . import views

urlpatterns = [
    path("", views.quizzes, name="quizzes"),
    path("user", views.user_quizzes, name="user_quizzes"),
    path("ai/generate-quiz", views.generate_quiz, name="generate_quiz"),
    path("upload", views.upload_quiz, name="upload_quiz"),
    path("<int:pk>", views.quiz_detail, name="quiz_detail"),
]

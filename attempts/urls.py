from django.urls import path

from . import views

urlpatterns = [
    path("start", views.start, name="attempt_start"),
    path("answer", views.answer, name="attempt_answer"),
    path("tick", views.tick, name="attempt_tick"),
    path("complete", views.complete, name="attempt_complete"),
]

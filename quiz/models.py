from django.db import models
from django.core.validators import MinValueValidator, MaxValueValidator
from django.contrib.auth.models import User

MIN_QUESTIONS = 1
MAX_QUESTIONS = 50
MIN_TIME_LIMIT = 1
MAX_TIME_LIMIT = 120
OPTIONS_PER_QUESTION = 4


class Quiz(models.Model):
    title = models.CharField(max_length=255)
    topic = models.CharField(max_length=255)
    num_questions = models.IntegerField(
        validators=[MinValueValidator(MIN_QUESTIONS), MaxValueValidator(MAX_QUESTIONS)])
    time_limit = models.IntegerField(
        validators=[MinValueValidator(MIN_TIME_LIMIT), MaxValueValidator(MAX_TIME_LIMIT)])
    # Removing a user leaves their quizzes in place, still pointing at the old id
    created_by = models.ForeignKey(User, on_delete=models.DO_NOTHING, db_constraint=False, related_name="quizzes")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["title", "topic"], name="quiz_title_topic_idx"),
            models.Index(fields=["created_by"], name="quiz_created_by_idx"),
        ]

    def __str__(self):
        return self.title


class Question(models.Model):
    question_text = models.TextField()
    quiz = models.ForeignKey(Quiz, on_delete=models.CASCADE, related_name="questions")
    question_number = models.IntegerField(default=0)
    explanation = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["question_number", "id"]

    def __str__(self):
        return self.question_text[:50]

    @property
    def correct_answer(self):
        for option in self.options.all():
            if option.correct:
                return option.option_text
        return None


class Option(models.Model):
    option_text = models.TextField()
    question = models.ForeignKey(Question, on_delete=models.CASCADE, related_name="options")
    correct = models.BooleanField(default=False)
    option_number = models.IntegerField(default=0)

    class Meta:
        ordering = ["option_number", "id"]

    def __str__(self):
        return self.option_text

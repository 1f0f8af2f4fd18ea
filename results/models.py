from django.db import models
from django.contrib.auth.models import User

from quiz.models import Quiz


class QuizResult(models.Model):
    # Results outlive both the quiz and the user they point at
    quiz = models.ForeignKey(Quiz, on_delete=models.DO_NOTHING, db_constraint=False, related_name="results")
    user = models.ForeignKey(User, on_delete=models.DO_NOTHING, db_constraint=False, related_name="quiz_results")
    score = models.PositiveIntegerField()
    total_questions = models.PositiveIntegerField()
    time_taken = models.PositiveIntegerField(help_text="Seconds")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["user", "created_at"], name="result_user_created_idx"),
        ]

    def __str__(self):
        return f"{self.score}/{self.total_questions} on quiz {self.quiz_id}"

    @property
    def percentage(self):
        if not self.total_questions:
            return 0
        return round(self.score / self.total_questions * 100, 2)


class ResultAnswer(models.Model):
    result = models.ForeignKey(QuizResult, on_delete=models.CASCADE, related_name="answers")
    answer_number = models.IntegerField(default=0)
    question_text = models.TextField()
    user_answer = models.TextField(blank=True, default="")
    correct_answer = models.TextField()
    is_correct = models.BooleanField(default=False)

    class Meta:
        ordering = ["answer_number", "id"]

    def __str__(self):
        return self.question_text[:50]

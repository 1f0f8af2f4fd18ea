import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("quiz", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="QuizResult",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("score", models.PositiveIntegerField()),
                ("total_questions", models.PositiveIntegerField()),
                ("time_taken", models.PositiveIntegerField(help_text="Seconds")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("quiz", models.ForeignKey(
                    db_constraint=False, on_delete=django.db.models.deletion.DO_NOTHING,
                    related_name="results", to="quiz.quiz")),
                ("user", models.ForeignKey(
                    db_constraint=False, on_delete=django.db.models.deletion.DO_NOTHING,
                    related_name="quiz_results", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["user", "created_at"], name="result_user_created_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ResultAnswer",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("answer_number", models.IntegerField(default=0)),
                ("question_text", models.TextField()),
                ("user_answer", models.TextField(blank=True, default="")),
                ("correct_answer", models.TextField()),
                ("is_correct", models.BooleanField(default=False)),
                ("result", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name="answers", to="results.quizresult")),
            ],
            options={
                "ordering": ["answer_number", "id"],
            },
        ),
    ]

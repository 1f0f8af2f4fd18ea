import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Quiz",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=255)),
                ("topic", models.CharField(max_length=255)),
                ("num_questions", models.IntegerField(validators=[
                    django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(50)])),
                ("time_limit", models.IntegerField(validators=[
                    django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(120)])),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("created_by", models.ForeignKey(
                    db_constraint=False, on_delete=django.db.models.deletion.DO_NOTHING,
                    related_name="quizzes", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["title", "topic"], name="quiz_title_topic_idx"),
                    models.Index(fields=["created_by"], name="quiz_created_by_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Question",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("question_text", models.TextField()),
                ("question_number", models.IntegerField(default=0)),
                ("explanation", models.TextField(blank=True, default="")),
                ("quiz", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name="questions", to="quiz.quiz")),
            ],
            options={
                "ordering": ["question_number", "id"],
            },
        ),
        migrations.CreateModel(
            name="Option",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("option_text", models.TextField()),
                ("correct", models.BooleanField(default=False)),
                ("option_number", models.IntegerField(default=0)),
                ("question", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name="options", to="quiz.question")),
            ],
            options={
                "ordering": ["option_number", "id"],
            },
        ),
    ]

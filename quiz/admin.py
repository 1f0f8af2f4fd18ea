from django.contrib import admin

from quiz.models import Quiz, Question, Option


class OptionInline(admin.TabularInline):
    model = Option
    extra = 0


class QuestionAdmin(admin.ModelAdmin):
    list_display = ("question_text", "quiz", "question_number")
    list_filter = ("quiz",)
    inlines = [OptionInline]


class QuizAdmin(admin.ModelAdmin):
    list_display = ("title", "topic", "created_by_id", "quizzes_by_creator", "num_questions", "time_limit",
                    "created_at")
    list_filter = ("topic",)
    search_fields = ("title", "topic")

    @admin.display(description="Quizzes by this creator")
    def quizzes_by_creator(self, obj):
        return Quiz.objects.filter(created_by_id=obj.created_by_id).count()


admin.site.register(Quiz, QuizAdmin)
admin.site.register(Question, QuestionAdmin)

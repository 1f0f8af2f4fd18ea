from django.contrib import admin

from results.models import QuizResult, ResultAnswer


class ResultAnswerInline(admin.TabularInline):
    model = ResultAnswer
    extra = 0


class QuizResultAdmin(admin.ModelAdmin):
    list_display = ("quiz_id", "user_id", "score", "total_questions", "time_taken", "attempts_by_user", "created_at")
    inlines = [ResultAnswerInline]

    @admin.display(description="Attempts by this user")
    def attempts_by_user(self, obj):
        return QuizResult.objects.filter(user_id=obj.user_id).count()


admin.site.register(QuizResult, QuizResultAdmin)

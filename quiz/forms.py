from django import forms
from django.conf import settings
from django.core.validators import FileExtensionValidator

from quiz.models import MIN_QUESTIONS, MAX_QUESTIONS
from quiz.utils import ALLOWED_EXTENSIONS

INVALID_FILE_TYPE_MESSAGE = "Invalid file type. Only PDF, TXT, and Word documents are allowed."


class QuizUploadForm(forms.Form):
    title = forms.CharField(label="Title", max_length=255)
    topic = forms.CharField(label="Topic", max_length=255)
    numQuestions = forms.IntegerField(label="Number of Questions", min_value=MIN_QUESTIONS,
                                      max_value=MAX_QUESTIONS, required=False)
    difficulty = forms.ChoiceField(choices=[("easy", "Easy"), ("medium", "Medium"), ("hard", "Hard")],
                                   required=False)
    file = forms.FileField(validators=[FileExtensionValidator(ALLOWED_EXTENSIONS, message=INVALID_FILE_TYPE_MESSAGE)])

    def clean_numQuestions(self):
        return self.cleaned_data.get("numQuestions") or 10

    def clean_file(self):
        uploaded_file = self.cleaned_data["file"]
        if uploaded_file.size > settings.QUIZ_UPLOAD_MAX_SIZE:
            max_mb = settings.QUIZ_UPLOAD_MAX_SIZE // (1024 * 1024)
            raise forms.ValidationError(f"File too large. Maximum size is {max_mb}MB.")
        return uploaded_file

from django import forms
from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password

User = get_user_model()


class SignUpForm(forms.Form):
    name = forms.CharField(max_length=150)
    email = forms.EmailField(max_length=150)
    password = forms.CharField(strip=False)

    def clean_email(self):
        email = self.cleaned_data["email"].strip().lower()
        if User.objects.filter(username=email).exists():
            raise forms.ValidationError("A user with that email already exists.")
        return email

    def clean_password(self):
        password = self.cleaned_data["password"]
        validate_password(password)
        return password


class LoginForm(forms.Form):
    email = forms.EmailField()
    password = forms.CharField(strip=False)


class ProfileUpdateForm(forms.Form):
    name = forms.CharField(max_length=150, required=False)
    password = forms.CharField(strip=False, required=False)
    currentPassword = forms.CharField(strip=False, required=False)

    def __init__(self, user, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.user = user

    def clean_name(self):
        name = self.cleaned_data.get("name")
        if "name" in self.data and not name:
            raise forms.ValidationError("Name cannot be empty.")
        return name

    def clean(self):
        cleaned_data = super().clean()

        if "password" in self.data:
            password = cleaned_data.get("password")
            if not password:
                self.add_error("password", "Password cannot be empty.")
                return cleaned_data
            if not cleaned_data.get("currentPassword"):
                self.add_error("currentPassword", "Current password is required")
                return cleaned_data
            try:
                validate_password(password, self.user)
            except forms.ValidationError as e:
                self.add_error("password", e)

        return cleaned_data

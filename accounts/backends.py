from django.contrib.auth.backends import BaseBackend
from django.contrib.auth import get_user_model

User = get_user_model()


class EmailBackend(BaseBackend):
    """
    Authenticate with email and password.

    Accounts are stored with the lower-cased email as their username.
    """

    def authenticate(self, request, username=None, password=None, email=None, **kwargs):
        identifier = email or username

        if not identifier or password is None:
            return None

        try:
            user = User.objects.get(username=identifier.strip().lower())
        except User.DoesNotExist:
            # same hashing cost as a wrong password
            User().set_password(password)
            return None

        if user.check_password(password) and self.user_can_authenticate(user):
            return user

        return None

    def get_user(self, user_id):
        try:
            user = User.objects.get(pk=user_id)
        except User.DoesNotExist:
            return None

        return user if self.user_can_authenticate(user) else None

    def user_can_authenticate(self, user):
        return getattr(user, "is_active", False)

"""
Bearer credentials.

A credential is the user's primary key signed with a timestamp using
Django's signing framework. ``verify`` tells an expired credential apart from
one that was tampered with or never issued; callers that face the outside
world collapse both into a single ``Unauthenticated`` error.
"""

from django.conf import settings
from django.core import signing


class CredentialError(Exception):
    pass


class InvalidCredential(CredentialError):
    pass


class ExpiredCredential(CredentialError):
    pass


class BearerTokenProvider:

    def __init__(self, salt=None, max_age=None):
        self._salt = salt
        self._max_age = max_age

    @property
    def salt(self):
        return self._salt or settings.AUTH_TOKEN_SALT

    @property
    def max_age(self):
        return self._max_age if self._max_age is not None else settings.AUTH_TOKEN_MAX_AGE

    def _signer(self):
        return signing.TimestampSigner(salt=self.salt)

    def issue(self, user) -> str:
        return self._signer().sign_object({"user_id": user.pk})

    def verify(self, credential: str) -> int:
        try:
            payload = self._signer().unsign_object(credential, max_age=self.max_age)
        except signing.SignatureExpired as e:
            raise ExpiredCredential(str(e)) from e
        except signing.BadSignature as e:
            raise InvalidCredential(str(e)) from e

        if not isinstance(payload, dict) or not isinstance(payload.get("user_id"), int):
            raise InvalidCredential("Credential does not carry a user id")

        return payload["user_id"]


bearer_tokens = BearerTokenProvider()

import json
from unittest.mock import patch

from django.test import TestCase, Client, RequestFactory, override_settings
from django.contrib.auth.models import User
from django.core import signing
from django.db import IntegrityError
from django.urls import reverse

from accounts.backends import EmailBackend
from accounts.decorators import resolve_bearer_user
from accounts.tokens import BearerTokenProvider, bearer_tokens, InvalidCredential, ExpiredCredential
from QuizMaster.exceptions import Unauthenticated
from quiz import services as quiz_services


class AccountsTestCase(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.test_user = User.objects.create_user(username="testuser@gmail.com", password="password",
                                                 email="testuser@gmail.com", first_name="Test User")
        cls.inactive_user = User.objects.create_user(username="inactive_user@gmail.com", password="password2",
                                                     email="inactive_user@gmail.com")
        cls.inactive_user.is_active = False
        cls.inactive_user.save()

    def setUp(self):
        # Every test needs a client.
        self.authenticated_client = Client(HTTP_AUTHORIZATION=f"Bearer {bearer_tokens.issue(self.test_user)}")
        self.unauthenticated_client = Client()

    def post_json(self, client, url, data, method="post"):
        return getattr(client, method)(url, data=json.dumps(data), content_type="application/json")

    def test_register(self):
        response = self.post_json(self.unauthenticated_client, reverse("register"), {
            "name": "New Person", "email": "New.Person@Example.com", "password": "secret1",
        })

        self.assertEqual(response.status_code, 201)
        data = response.json()
        self.assertEqual(data["user"]["email"], "new.person@example.com")
        self.assertEqual(data["user"]["name"], "New Person")

        user = User.objects.get(username="new.person@example.com")
        self.assertEqual(bearer_tokens.verify(data["token"]), user.pk)
        self.assertTrue(user.check_password("secret1"))

    def test_register_duplicate_email(self):
        response = self.post_json(self.unauthenticated_client, reverse("register"), {
            "name": "Again", "email": "TestUser@gmail.com", "password": "secret1",
        })

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "A user with that email already exists.")

    @patch("django.contrib.auth.models.UserManager.create_user", side_effect=IntegrityError("UNIQUE constraint failed"))
    def test_register_race_on_email(self, create_user):
        response = self.post_json(self.unauthenticated_client, reverse("register"), {
            "name": "Racer", "email": "racer@example.com", "password": "secret1",
        })

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"message": "A user with that email already exists."})

    def test_register_short_password(self):
        response = self.post_json(self.unauthenticated_client, reverse("register"), {
            "name": "Short", "email": "short@example.com", "password": "abc",
        })

        self.assertEqual(response.status_code, 400)
        self.assertIn("password", response.json()["errors"])
        self.assertFalse(User.objects.filter(username="short@example.com").exists())

    def test_register_invalid_json(self):
        response = self.unauthenticated_client.post(reverse("register"), data="nope",
                                                    content_type="application/json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"message": "Invalid JSON"})

    def test_login(self):
        response = self.post_json(self.unauthenticated_client, reverse("login"), {
            "email": "TESTUSER@gmail.com", "password": "password",
        })

        self.assertEqual(response.status_code, 200)
        self.assertEqual(bearer_tokens.verify(response.json()["token"]), self.test_user.pk)
        self.assertEqual(response.json()["user"]["id"], self.test_user.pk)

    def test_login_wrong_password(self):
        response = self.post_json(self.unauthenticated_client, reverse("login"), {
            "email": "testuser@gmail.com", "password": "wrong",
        })

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"message": "Invalid email or password"})

    def test_login_inactive_user(self):
        response = self.post_json(self.unauthenticated_client, reverse("login"), {
            "email": "inactive_user@gmail.com", "password": "password2",
        })

        self.assertEqual(response.status_code, 401)

    def test_login_get_not_allowed(self):
        response = self.unauthenticated_client.get(reverse("login"))
        self.assertEqual(response.status_code, 405)

    def test_me(self):
        response = self.authenticated_client.get(reverse("me"))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["email"], "testuser@gmail.com")
        self.assertEqual(response.json()["name"], "Test User")

    def test_me_unauthenticated(self):
        response = self.unauthenticated_client.get(reverse("me"))

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"message": "Authentication required"})

    def test_update_name(self):
        response = self.post_json(self.authenticated_client, reverse("me"), {"name": "Renamed"}, method="patch")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["name"], "Renamed")
        self.test_user.refresh_from_db()
        self.assertEqual(self.test_user.first_name, "Renamed")

    def test_update_password(self):
        response = self.post_json(self.authenticated_client, reverse("me"),
                                  {"password": "brandnew", "currentPassword": "password"}, method="patch")

        self.assertEqual(response.status_code, 200)
        self.test_user.refresh_from_db()
        self.assertTrue(self.test_user.check_password("brandnew"))

    def test_update_password_wrong_current_password(self):
        response = self.post_json(self.authenticated_client, reverse("me"),
                                  {"password": "brandnew", "currentPassword": "not it"}, method="patch")

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"message": "Current password is incorrect"})
        self.test_user.refresh_from_db()
        self.assertTrue(self.test_user.check_password("password"))

    def test_update_password_without_current_password(self):
        response = self.post_json(self.authenticated_client, reverse("me"), {"password": "brandnew"},
                                  method="patch")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Current password is required")

    def test_update_unknown_field(self):
        response = self.post_json(self.authenticated_client, reverse("me"), {"email": "x@example.com"},
                                  method="patch")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"message": "Invalid updates"})

    def test_delete_account_leaves_quizzes(self):
        quiz = quiz_services.create_quiz(self.test_user, "Mine", "Things", {"numQuestions": 1, "timeLimit": 1}, [{
            "question": "Which?", "options": ["a", "b", "c", "d"], "correctAnswer": "a",
        }])

        response = self.authenticated_client.delete(reverse("me"))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"message": "User deleted"})
        self.assertFalse(User.objects.filter(pk=self.test_user.pk).exists())
        self.assertEqual(quiz_services.get_quiz(quiz.pk).created_by_id, self.test_user.pk)

        # The credential still verifies but nobody is behind it any more
        response = self.authenticated_client.get(reverse("me"))
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"message": "Authentication failed"})


class BearerTokenTestCase(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.test_user = User.objects.create_user(username="token@example.com", email="token@example.com",
                                                 password="password")

    def setUp(self):
        self.factory = RequestFactory()

    def test_issue_and_verify(self):
        token = bearer_tokens.issue(self.test_user)
        self.assertEqual(bearer_tokens.verify(token), self.test_user.pk)

    def test_tampered_token(self):
        token = bearer_tokens.issue(self.test_user)
        with self.assertRaises(InvalidCredential):
            bearer_tokens.verify(token[:-2] + "xx")

    def test_token_from_other_salt(self):
        token = BearerTokenProvider(salt="somewhere.else").issue(self.test_user)
        with self.assertRaises(InvalidCredential):
            bearer_tokens.verify(token)

    def test_token_without_user_id(self):
        token = signing.TimestampSigner(salt="accounts.bearer").sign_object({"something": "else"})
        with self.assertRaises(InvalidCredential):
            bearer_tokens.verify(token)

    def test_expired_token(self):
        token = bearer_tokens.issue(self.test_user)
        with self.assertRaises(ExpiredCredential):
            BearerTokenProvider(max_age=-1).verify(token)

    def test_guard_reasons_collapse_to_one_message(self):
        expired = BearerTokenProvider().issue(self.test_user)
        cases = [
            ("Bearer garbage", "invalid"),
            ("Token something", "missing"),
        ]

        for header, reason in cases:
            with self.subTest(reason=reason):
                request = self.factory.get("/api/users/me", HTTP_AUTHORIZATION=header)
                with self.assertRaises(Unauthenticated) as cm:
                    resolve_bearer_user(request)
                self.assertEqual(cm.exception.reason, reason)

        with override_settings(AUTH_TOKEN_MAX_AGE=-1):
            request = self.factory.get("/api/users/me", HTTP_AUTHORIZATION=f"Bearer {expired}")
            with self.assertRaises(Unauthenticated) as cm:
                resolve_bearer_user(request)
            self.assertEqual(cm.exception.reason, "expired")
            self.assertEqual(cm.exception.message, "Authentication failed")

    def test_guard_resolves_user(self):
        request = self.factory.get("/api/users/me",
                                   HTTP_AUTHORIZATION=f"Bearer {bearer_tokens.issue(self.test_user)}")
        self.assertEqual(resolve_bearer_user(request), self.test_user)

    @patch("accounts.decorators.bearer_tokens")
    def test_unexpected_error_is_internal(self, mock_tokens):
        mock_tokens.verify.side_effect = RuntimeError("signing backend exploded")

        response = Client(HTTP_AUTHORIZATION="Bearer whatever").get(reverse("me"))

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"message": "Something went wrong on the server. Please try again."})


class EmailBackendTestCase(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.test_user = User.objects.create_user(username="backend@example.com", email="backend@example.com",
                                                 password="password")

    def test_authenticate_with_email(self):
        self.assertEqual(EmailBackend().authenticate(None, email=" Backend@Example.com ", password="password"),
                         self.test_user)

    def test_authenticate_unknown_email(self):
        self.assertIsNone(EmailBackend().authenticate(None, email="nobody@example.com", password="password"))

    def test_get_user(self):
        self.assertEqual(EmailBackend().get_user(self.test_user.pk), self.test_user)
        self.assertIsNone(EmailBackend().get_user(9999))


class HealthCheckTestCase(TestCase):

    def test_health(self):
        response = Client().get("/api/health")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "healthy")
        self.assertEqual(response.json()["dbStatus"], "connected")

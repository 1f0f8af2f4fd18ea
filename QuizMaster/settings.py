"""
Django settings for QuizMaster project.

Values are read from the environment, with a local .env file loaded first
when one exists.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

load_dotenv(BASE_DIR / ".env")


def env_bool(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "django-insecure-quiz-master-development-key")

DEBUG = env_bool("DJANGO_DEBUG", False)

DJANGO_ENV = os.environ.get("DJANGO_ENV", "DEVELOPMENT")

ALLOWED_HOSTS = [
    host.strip() for host in os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",")
    if host.strip()
]


INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "accounts",
    "quiz",
    "attempts",
    "results",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    "QuizMaster.middleware.JsonErrorMiddleware",
]

ROOT_URLCONF = "QuizMaster.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "QuizMaster.wsgi.application"


# The whole request is one transaction, so a failing question save rolls
# back the quiz that was saved before it.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("DATABASE_NAME", str(BASE_DIR / "db.sqlite3")),
        "ATOMIC_REQUESTS": True,
    }
}

AUTHENTICATION_BACKENDS = [
    "accounts.backends.EmailBackend",
]

AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator", "OPTIONS": {"min_length": 6}},
]

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

MEDIA_ROOT = BASE_DIR / "media"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"


# Bearer credentials
AUTH_TOKEN_MAX_AGE = int(os.environ.get("AUTH_TOKEN_MAX_AGE", 60 * 60 * 24 * 7))
AUTH_TOKEN_SALT = "accounts.bearer"


# Question generation
OPEN_API_KEY = os.environ.get("OPENAI_API_KEY", "")
QUIZ_LLM_MODEL = os.environ.get("QUIZ_LLM_MODEL", "gpt-4o-mini")
QUIZ_LLM_TEMPERATURE = 0.7
QUIZ_LLM_TIMEOUT = 60
QUIZ_GENERATION_MAX_RETRIES = 2
QUIZ_GENERATION_RETRY_DELAY = 2
QUIZ_DEFAULT_DIFFICULTY = "medium"


# File based quizzes
QUIZ_UPLOAD_DIR = MEDIA_ROOT / "uploads"
QUIZ_UPLOAD_MAX_SIZE = 5 * 1024 * 1024
QUIZ_UPLOAD_DEFAULT_TIME_LIMIT = 30
QUIZ_MIN_EXTRACTED_CHARS = 10


# When True the stored quiz decides whether each submitted answer is correct
# instead of the isCorrect flag sent by the client.
QUIZ_RESULTS_RECOMPUTE_CORRECTNESS = env_bool("QUIZ_RESULTS_RECOMPUTE_CORRECTNESS", False)


LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{levelname} {asctime} {module} {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "loggers": {
        "quiz_master": {
            "handlers": ["console"],
            "level": os.environ.get("DJANGO_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
        "django": {
            "handlers": ["console"],
            "level": "WARNING",
        },
    },
}

"""
Django settings for the applykit project.

Every deploy-time value is read from the environment once, at startup.
"""
import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default


SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "django-insecure-applykit-development-key")
DEBUG = _env_bool("DJANGO_DEBUG", False)
ALLOWED_HOSTS = [
    host.strip()
    for host in os.environ.get("DJANGO_ALLOWED_HOSTS", "*").split(",")
    if host.strip()
]

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "django_q",
    "accounts",
    "generation",
    "audit",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    # Placed after authentication so the resolved user is visible once the
    # view has run.
    "audit.middleware.AuditLogMiddleware",
]

ROOT_URLCONF = "applykit.urls"
WSGI_APPLICATION = "applykit.wsgi.application"

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

DATABASES = {
    "default": {
        "ENGINE": os.environ.get("DB_ENGINE", "django.db.backends.sqlite3"),
        "NAME": os.environ.get("DB_NAME", str(BASE_DIR / "db.sqlite3")),
        "USER": os.environ.get("DB_USER", ""),
        "PASSWORD": os.environ.get("DB_PASSWORD", ""),
        "HOST": os.environ.get("DB_HOST", ""),
        "PORT": os.environ.get("DB_PORT", ""),
    }
}

AUTH_USER_MODEL = "accounts.User"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True
STATIC_URL = "static/"

APP_VERSION = os.environ.get("APP_VERSION", "1.0.0")

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "accounts.authentication.ApiKeyAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAuthenticated",
    ],
    "DEFAULT_PARSER_CLASSES": [
        "rest_framework.parsers.JSONParser",
        "rest_framework.parsers.FormParser",
    ],
    "EXCEPTION_HANDLER": "applykit.exception_handler.api_exception_handler",
    "UNAUTHENTICATED_USER": "django.contrib.auth.models.AnonymousUser",
}

# Django-Q is only used when AUDIT_TASK_BACKEND == "django_q".
Q_CLUSTER = {
    "name": "applykit",
    "workers": _env_int("Q_WORKERS", 2),
    "timeout": 60,
    "retry": 120,
    "max_attempts": 1,
    "orm": "default",
}

# --------------------------------------------------------------------------- #
# Text generation                                                             #
# --------------------------------------------------------------------------- #

# Credentials are read by generation.credentials straight from the
# environment: GEMINI_API_KEY, GEMINI_API_KEY_FALLBACK_1..N,
# OPENAI_API_KEY, OPENAI_API_KEY_FALLBACK_1..N.
GEMINI_MODEL = os.environ.get("GEMINI_MODEL", "gemini-2.5-flash")
OPENAI_MODEL = os.environ.get("OPENAI_MODEL", "gpt-4.1")

GENERATION_MAX_RETRIES = _env_int("GENERATION_MAX_RETRIES", 2)
GENERATION_BACKOFF_BASE_MS = {
    "gemini": _env_int("GEMINI_BACKOFF_BASE_MS", 1000),
    "openai": _env_int("OPENAI_BACKOFF_BASE_MS", 500),
}
GENERATION_REQUEST_TIMEOUT_SECONDS = _env_int("GENERATION_REQUEST_TIMEOUT_SECONDS", 60)
GENERATION_DEFAULT_PROVIDER = os.environ.get("GENERATION_DEFAULT_PROVIDER", "gemini")
GENERATION_SERVICE_PROVIDERS = {
    "KEYWORDS": "openai",
}

# --------------------------------------------------------------------------- #
# Audit trail and alerts                                                      #
# --------------------------------------------------------------------------- #

AUDIT_ENABLED = _env_bool("AUDIT_ENABLED", True)
AUDIT_TASK_BACKEND = os.environ.get("AUDIT_TASK_BACKEND", "thread")
AUDIT_MAX_WORKERS = _env_int("AUDIT_MAX_WORKERS", 4)
SLACK_WEBHOOK_URL = os.environ.get("SLACK_WEBHOOK_URL", "")
ALERT_TIMEOUT_SECONDS = _env_int("ALERT_TIMEOUT_SECONDS", 5)
DAILY_USAGE_LIMIT = _env_int("DAILY_USAGE_LIMIT", 20)

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": os.environ.get("LOG_LEVEL", "INFO"),
    },
    "loggers": {
        "django": {
            "handlers": ["console"],
            "level": os.environ.get("DJANGO_LOG_LEVEL", "WARNING"),
            "propagate": False,
        },
    },
}

import os
from pathlib import Path

import environ
from django.core.exceptions import ImproperlyConfigured

BASE_DIR = Path(__file__).resolve().parent.parent

env = environ.Env(
    DEBUG=(bool, False),
)

# A .env next to manage.py is optional; containers pass real env vars.
environ.Env.read_env(os.path.join(BASE_DIR, ".env"))

DEBUG = env.bool("DEBUG", default=False)

_INSECURE_KEY_PREFIX = "eboto-insecure-dev-key"
SECRET_KEY = env("SECRET_KEY", default=f"{_INSECURE_KEY_PREFIX}-do-not-deploy")
if not DEBUG and SECRET_KEY.startswith(_INSECURE_KEY_PREFIX):
    raise ImproperlyConfigured("SECRET_KEY must be set when DEBUG is off.")

ALLOWED_HOSTS = env.list(
    "ALLOWED_HOSTS",
    default=["localhost", "127.0.0.1", "[::1]"] if DEBUG else [],
)
if not DEBUG and not ALLOWED_HOSTS:
    raise ImproperlyConfigured("ALLOWED_HOSTS must be set when DEBUG is off.")


# E-Boto API
# API_BASE wins; the NEXT_PUBLIC_* names are what older deployments set.
EBOTO_API_BASE = (
    env("API_BASE", default="")
    or env("NEXT_PUBLIC_API_BASE", default="")
    or env("NEXT_PUBLIC_API_BASE_URL", default="")
    or "http://localhost:4000"
).rstrip("/")

EBOTO_API_TIMEOUT_SECONDS = env.float("EBOTO_API_TIMEOUT_SECONDS", default=30.0)
EBOTO_LOGIN_TIMEOUT_SECONDS = env.float("EBOTO_LOGIN_TIMEOUT_SECONDS", default=8.0)

# The API-issued session token lives in this cookie; Django never reads its contents.
EBOTO_TOKEN_COOKIE_NAME = env("EBOTO_TOKEN_COOKIE_NAME", default="token")
EBOTO_TOKEN_COOKIE_MAX_AGE = env.int("EBOTO_TOKEN_COOKIE_MAX_AGE", default=7 * 24 * 3600)
EBOTO_TOKEN_COOKIE_SECURE = env.bool("EBOTO_TOKEN_COOKIE_SECURE", default=not DEBUG)


INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "core",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    # request.user comes from the API session, not django.contrib.auth.
    "core.middleware.EBotoSessionMiddleware",
    "core.middleware.TokenRequiredMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "config.urls"
WSGI_APPLICATION = "config.wsgi.application"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
                "core.context_processors.navigation",
            ],
        },
    },
]

# Only sessions and flash messages are stored locally; candidates, voters and
# votes all live behind the E-Boto API.
DATABASES = {
    "default": env.db("DATABASE_URL", default=f"sqlite:///{BASE_DIR / 'db.sqlite3'}"),
}
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"
TIME_ZONE = env("TIME_ZONE", default="Asia/Manila")
USE_I18N = True
USE_TZ = True

STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

LOGIN_URL = "/login"
LOGIN_REDIRECT_URL = "/"
LOGOUT_REDIRECT_URL = "/login"

if not DEBUG:
    # TLS usually terminates at a reverse proxy in front of gunicorn.
    if env.bool("SECURE_PROXY_SSL", default=True):
        SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
    SECURE_SSL_REDIRECT = env.bool("SECURE_SSL_REDIRECT", default=False)
    SESSION_COOKIE_SECURE = env.bool("SESSION_COOKIE_SECURE", default=True)
    CSRF_COOKIE_SECURE = env.bool("CSRF_COOKIE_SECURE", default=True)
    CSRF_TRUSTED_ORIGINS = env.list("CSRF_TRUSTED_ORIGINS", default=[])
    SECURE_CONTENT_TYPE_NOSNIFF = True
    SECURE_REFERRER_POLICY = env("SECURE_REFERRER_POLICY", default="same-origin")
    SECURE_HSTS_SECONDS = env.int("SECURE_HSTS_SECONDS", default=0)
    SECURE_HSTS_INCLUDE_SUBDOMAINS = env.bool("SECURE_HSTS_INCLUDE_SUBDOMAINS", default=False)
    SECURE_HSTS_PRELOAD = env.bool("SECURE_HSTS_PRELOAD", default=False)


def _console_logger(level: str) -> dict[str, object]:
    return {"handlers": ["console"], "level": level, "propagate": False}


# Everything goes to stdout; probe requests are dropped and API tokens masked.
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "filters": {
        "skip_healthz": {"()": "core.logging_filters.SkipHealthzFilter"},
        "redact_token": {"()": "core.logging_filters.RedactTokenFilter"},
    },
    "formatters": {
        "console": {"format": "[{asctime}] {levelname} {name}: {message}", "style": "{"},
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "console",
            "filters": ["skip_healthz", "redact_token"],
        },
    },
    "loggers": {
        "core": _console_logger("DEBUG" if DEBUG else "INFO"),
        # urllib3 logs every pooled connection at DEBUG.
        "urllib3": _console_logger("WARNING"),
        "django.request": _console_logger("WARNING"),
        "django.server": _console_logger("INFO"),
    },
}

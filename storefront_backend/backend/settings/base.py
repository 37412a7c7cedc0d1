"""
PATH: backend/settings/base.py

BASE SETTINGS (shared by dev + prod)

Operational maturity:
- Throttling (scoped per surface: catalog, auth, writes, webhooks, edge)
- Frontend redirect base (email verification, payment return)
- PayPal deposits, Resend email dispatch, supplier API
- Session/refresh policy consumed by the browser client
- Sentry (optional): error visibility in production
"""

from __future__ import annotations

import sys
from datetime import timedelta
from pathlib import Path

import environ
from corsheaders.defaults import default_headers, default_methods

# -----------------------------------------
# BASE DIRECTORY
# -----------------------------------------
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# -----------------------------------------
# TEST MODE DETECTION
# -----------------------------------------
TESTING = "test" in sys.argv or "pytest" in sys.modules

# -----------------------------------------
# ENV (django-environ)
# -----------------------------------------
env = environ.Env(
    DEBUG=(bool, True),
    SECRET_KEY=(str, ""),
    TIME_ZONE=(str, "UTC"),
    ALLOWED_HOSTS=(list, ["localhost", "127.0.0.1"]),
    CORS_ALLOWED_ORIGINS=(list, ["http://localhost:5173"]),
    CSRF_TRUSTED_ORIGINS=(list, ["http://localhost:5173"]),
    DATABASE_URL=(str, f"sqlite:///{BASE_DIR / 'db.sqlite3'}"),
    LOG_LEVEL=(str, "INFO"),
    # PayPal
    PAYPAL_CLIENT_ID=(str, ""),
    PAYPAL_CLIENT_SECRET=(str, ""),
    PAYPAL_MODE=(str, "sandbox"),
    PAYPAL_WEBHOOK_ID=(str, ""),
    PAYPAL_CURRENCY=(str, "USD"),
    # Resend (transactional email)
    RESEND_API_KEY=(str, ""),
    EMAIL_FROM_ADDRESS=(str, "onboarding@resend.dev"),
    EMAIL_DISPATCH_ENABLED=(bool, not TESTING),
    SITE_NAME=(str, "AccZen"),
    SITE_DOMAIN=(str, "localhost"),
    # Supplier API
    SUPPLIER_API_BASE=(str, "https://taphoammo.net/api"),
    SUPPLIER_TIMEOUT_SECONDS=(int, 15),
    SUPPLIER_POLL_ATTEMPTS=(int, 5),
    SUPPLIER_POLL_DELAY_SECONDS=(float, 1.5),
    # Throttling
    THROTTLE_ANON_RATE=(str, "60/min"),
    THROTTLE_USER_RATE=(str, "600/min"),
    THROTTLE_PUBLIC_CATALOG_RATE=(str, "120/min"),
    THROTTLE_PUBLIC_WRITE_RATE=(str, "10/min"),
    THROTTLE_AUTH_RATE=(str, "20/min"),
    THROTTLE_PURCHASE_RATE=(str, "30/min"),
    THROTTLE_WEBHOOK_RATE=(str, "600/min"),
    THROTTLE_EDGE_RATE=(str, "60/min"),
    FRONTEND_BASE_URL=(str, "http://localhost:5173"),
    API_BASE_URL=(str, "http://localhost:8000"),
    EMAIL_VERIFICATION_MAX_AGE_SECONDS=(int, 3 * 24 * 3600),
    PASSWORD_RESET_TIMEOUT=(int, 3600),
    # Sentry (optional; enable by setting SENTRY_DSN)
    SENTRY_DSN=(str, ""),
    SENTRY_ENVIRONMENT=(str, "development"),
    SENTRY_TRACES_SAMPLE_RATE=(float, 0.0),
    SENTRY_SEND_PII=(bool, False),
)

# -----------------------------------------
# LOAD .env
# -----------------------------------------
env_file_1 = BASE_DIR / ".env"
env_file_2 = BASE_DIR.parent / ".env"

if env_file_1.exists():
    env.read_env(str(env_file_1))
elif env_file_2.exists():
    env.read_env(str(env_file_2))

# -----------------------------------------
# CORE SECURITY
# -----------------------------------------
SECRET_KEY = (env("SECRET_KEY") or "dev-insecure-change-me").strip()
DEBUG = env.bool("DEBUG")
ALLOWED_HOSTS = env.list("ALLOWED_HOSTS")

# -----------------------------------------
# I18N / TZ
# -----------------------------------------
LANGUAGE_CODE = "en-us"
TIME_ZONE = (env("TIME_ZONE") or "UTC").strip()
USE_I18N = True
USE_TZ = True

# -----------------------------------------
# AUTH USER MODEL (custom)
# -----------------------------------------
AUTH_USER_MODEL = "users.User"

# -----------------------------------------
# INSTALLED APPS
# -----------------------------------------
INSTALLED_APPS = [
    "corsheaders",
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "rest_framework_simplejwt",
    "rest_framework_simplejwt.token_blacklist",
    "drf_spectacular",
    "django_filters",
    "users.apps.UsersConfig",
    "wallet.apps.WalletConfig",
    "catalog.apps.CatalogConfig",
    "cart.apps.CartConfig",
    "orders.apps.OrdersConfig",
    "payments.apps.PaymentsConfig",
    "supplier.apps.SupplierConfig",
    "notifications.apps.NotificationsConfig",
    "security.apps.SecurityConfig",
    "siteconfig.apps.SiteConfigConfig",
]

# -----------------------------------------
# MIDDLEWARE
# -----------------------------------------
MIDDLEWARE = [
    "corsheaders.middleware.CorsMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "backend.urls"
WSGI_APPLICATION = "backend.wsgi.application"
APPEND_SLASH = True

# -----------------------------------------
# TEMPLATES (Django admin + email bodies)
# -----------------------------------------
TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [str(BASE_DIR / "templates")],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    }
]

# -----------------------------------------
# REST FRAMEWORK
# -----------------------------------------
_RELAXED_RATE = "10000/min"

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": (
        "rest_framework_simplejwt.authentication.JWTAuthentication",
    ),
    "DEFAULT_PERMISSION_CLASSES": ("rest_framework.permissions.IsAuthenticated",),
    "DEFAULT_FILTER_BACKENDS": ("django_filters.rest_framework.DjangoFilterBackend",),
    "DEFAULT_PAGINATION_CLASS": "rest_framework.pagination.PageNumberPagination",
    "PAGE_SIZE": 20,
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
    "DEFAULT_THROTTLE_CLASSES": (
        "rest_framework.throttling.AnonRateThrottle",
        "rest_framework.throttling.UserRateThrottle",
    ),
    "DEFAULT_THROTTLE_RATES": {
        "anon": _RELAXED_RATE if TESTING else env("THROTTLE_ANON_RATE"),
        "user": _RELAXED_RATE if TESTING else env("THROTTLE_USER_RATE"),
        "public_catalog": _RELAXED_RATE if TESTING else env("THROTTLE_PUBLIC_CATALOG_RATE"),
        "public_write": _RELAXED_RATE if TESTING else env("THROTTLE_PUBLIC_WRITE_RATE"),
        "auth": _RELAXED_RATE if TESTING else env("THROTTLE_AUTH_RATE"),
        "purchase": _RELAXED_RATE if TESTING else env("THROTTLE_PURCHASE_RATE"),
        "webhook": _RELAXED_RATE if TESTING else env("THROTTLE_WEBHOOK_RATE"),
        "edge": _RELAXED_RATE if TESTING else env("THROTTLE_EDGE_RATE"),
    },
}

# -----------------------------------------
# SIMPLE JWT
# -----------------------------------------
SIMPLE_JWT = {
    "ACCESS_TOKEN_LIFETIME": timedelta(minutes=30),
    "REFRESH_TOKEN_LIFETIME": timedelta(days=1),
    "ROTATE_REFRESH_TOKENS": True,
    "BLACKLIST_AFTER_ROTATION": True,
}

# -----------------------------------------
# SESSION POLICY (served to the browser client)
# -----------------------------------------
SESSION_POLICY = {
    "REFRESH_THRESHOLD_SECONDS": 300,
    "SCHEDULE_LEAD_SECONDS": 360,
    "INACTIVITY_TIMEOUT_SECONDS": 3 * 60 * 60,
}

# -----------------------------------------
# DATABASE
# -----------------------------------------
DATABASES = {
    "default": env.db("DATABASE_URL"),
}

# -----------------------------------------
# FRONTEND BASE URL
# -----------------------------------------
FRONTEND_BASE_URL = (env("FRONTEND_BASE_URL") or "http://localhost:5173").strip()
API_BASE_URL = (env("API_BASE_URL") or "http://localhost:8000").strip().rstrip("/")
EMAIL_VERIFICATION_MAX_AGE_SECONDS = env.int("EMAIL_VERIFICATION_MAX_AGE_SECONDS")
# default_token_generator (password reset links)
PASSWORD_RESET_TIMEOUT = env.int("PASSWORD_RESET_TIMEOUT")
PASSWORD_RESET_PATH = "/auth/reset-password"

# -----------------------------------------
# PAYMENTS
# -----------------------------------------
PAYMENTS = {
    "PAYPAL": {
        "CLIENT_ID": (env("PAYPAL_CLIENT_ID") or "").strip(),
        "CLIENT_SECRET": (env("PAYPAL_CLIENT_SECRET") or "").strip(),
        "MODE": (env("PAYPAL_MODE") or "sandbox").strip().lower(),
        "WEBHOOK_ID": (env("PAYPAL_WEBHOOK_ID") or "").strip(),
        "CURRENCY": (env("PAYPAL_CURRENCY") or "USD").strip().upper(),
        "FEE_PERCENT": "0.039",
        "FIXED_FEE": "0.30",
        "MIN_DEPOSIT": "1.00",
    }
}

# -----------------------------------------
# EMAIL DISPATCH (Resend)
# -----------------------------------------
SITE_NAME = (env("SITE_NAME") or "AccZen").strip()
SITE_DOMAIN = (env("SITE_DOMAIN") or "localhost").strip()

EMAIL_DISPATCH = {
    "ENABLED": env.bool("EMAIL_DISPATCH_ENABLED"),
    "RESEND_API_KEY": (env("RESEND_API_KEY") or "").strip(),
    "FROM_ADDRESS": (env("EMAIL_FROM_ADDRESS") or "onboarding@resend.dev").strip(),
}

# -----------------------------------------
# SUPPLIER API
# -----------------------------------------
SUPPLIER = {
    "API_BASE": (env("SUPPLIER_API_BASE") or "https://taphoammo.net/api").rstrip("/"),
    "TIMEOUT_SECONDS": env.int("SUPPLIER_TIMEOUT_SECONDS"),
    "POLL_ATTEMPTS": env.int("SUPPLIER_POLL_ATTEMPTS"),
    "POLL_DELAY_SECONDS": 0.0 if TESTING else env.float("SUPPLIER_POLL_DELAY_SECONDS"),
}

# -----------------------------------------
# SECURITY POLICY (fraud detection + registration lockout)
# -----------------------------------------
SECURITY_POLICY = {
    "LOGIN_FAILURE_LIMIT": 5,
    "LOGIN_FAILURE_WINDOW_MINUTES": 10,
    "LOGIN_DISTINCT_IP_LIMIT": 2,
    "LOGIN_DISTINCT_IP_MIN_ATTEMPTS": 3,
    "PURCHASE_DAILY_LIMIT": 20,
    "PURCHASE_AMOUNT_LIMIT": "500000",
    "PURCHASE_BURST_COUNT": 3,
    "PURCHASE_BURST_WINDOW_MINUTES": 5,
    "REGISTRATION_MAX_ATTEMPTS": 5,
    "REGISTRATION_WINDOW_MINUTES": 60,
    "REGISTRATION_LOCKOUT_MINUTES": 30,
}

# -----------------------------------------
# PUBLIC CONFIG LOOKUP (allow-list)
# -----------------------------------------
# Only these keys are ever returned by /api/config/lookup/.
PUBLIC_CONFIG_KEYS = {
    "PAYPAL_CLIENT_ID": PAYMENTS["PAYPAL"]["CLIENT_ID"],
    "PAYPAL_MODE": PAYMENTS["PAYPAL"]["MODE"],
    "PAYPAL_CURRENCY": PAYMENTS["PAYPAL"]["CURRENCY"],
    "SITE_NAME": SITE_NAME,
}

# -----------------------------------------
# LOGGING
# -----------------------------------------
LOG_LEVEL = (env("LOG_LEVEL") or "INFO").strip().upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "simple"},
    },
    "root": {"handlers": ["console"], "level": "WARNING"},
    "loggers": {
        app: {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False}
        for app in (
            "users",
            "wallet",
            "catalog",
            "cart",
            "orders",
            "payments",
            "supplier",
            "notifications",
            "security",
            "siteconfig",
        )
    },
}

# -----------------------------------------
# SENTRY (optional)
# -----------------------------------------
SENTRY_DSN = (env("SENTRY_DSN") or "").strip()
SENTRY_ENVIRONMENT = (env("SENTRY_ENVIRONMENT") or "development").strip()
SENTRY_TRACES_SAMPLE_RATE = float(env("SENTRY_TRACES_SAMPLE_RATE"))
SENTRY_SEND_PII = env.bool("SENTRY_SEND_PII")

if SENTRY_DSN:
    import sentry_sdk
    from sentry_sdk.integrations.django import DjangoIntegration

    sentry_sdk.init(
        dsn=SENTRY_DSN,
        environment=SENTRY_ENVIRONMENT,
        integrations=[DjangoIntegration()],
        traces_sample_rate=SENTRY_TRACES_SAMPLE_RATE,
        send_default_pii=SENTRY_SEND_PII,
    )

# -----------------------------------------
# CORS / CSRF
# -----------------------------------------
CORS_ALLOWED_ORIGINS = env.list("CORS_ALLOWED_ORIGINS")
CORS_ALLOW_CREDENTIALS = True
CORS_ALLOW_METHODS = list(default_methods)
CORS_ALLOW_HEADERS = [*default_headers, "idempotency-key"]

CSRF_TRUSTED_ORIGINS = env.list("CSRF_TRUSTED_ORIGINS")

# -----------------------------------------
# STATIC FILES
# -----------------------------------------
STATIC_URL = "static/"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# -----------------------------------------
# SWAGGER
# -----------------------------------------
SPECTACULAR_SETTINGS = {
    "TITLE": "Digital Storefront API",
    "DESCRIPTION": "Catalog, cart, wallet, PayPal deposits, supplier sync and back-office API",
    "VERSION": "1.0.0",
    "SERVE_INCLUDE_SCHEMA": False,
}

# -----------------------------------------
# AUTH BACKENDS
# -----------------------------------------
AUTHENTICATION_BACKENDS = ["users.auth_backends.EmailBackend"]

"""
Paysuite Django settings

CHANGE LOG
----------
2026-03-09 • Stripe Payments settings block
- STRIPE_PAYMENTS dict (mode, taxes, notifications, subscribers); see stripe_payments/conf.py.
- Email: Mailgun via Anymail (console under DEBUG); notification senders in STRIPE_PAYMENTS.

2026-03-02 • Initial project for the stripe_payments app
- .env loading via python-dotenv (same candidate paths on PA and local).
- Logging: RotatingFileHandler with encoding='utf-8' + console; 'stripe_payments' logger at INFO.
"""

from pathlib import Path
import os
from dotenv import load_dotenv

# ========= Base / Env =========
BASE_DIR = Path(__file__).resolve().parent.parent

ENV_CANDIDATES = [
    Path(os.path.expanduser('~/paysuite/.env')),  # PythonAnywhere: ~/paysuite/.env
    BASE_DIR / '.env',                             # Local: project root
    BASE_DIR.parent / '.env',                      # Local: repo root (if settings/ nested)
]
for _env in ENV_CANDIDATES:
    if _env.exists():
        load_dotenv(_env)
        print(f"[settings] Loaded env from: {_env}")
        break
else:
    load_dotenv()  # fallback (no-op if missing)

DEBUG = os.getenv("DEBUG", "False") == "True"

# ========= Secret Key =========
SECRET_KEY = os.getenv('DJANGO_SECRET_KEY', '')
if not SECRET_KEY:
    # Local runs and the test suite only; production must set DJANGO_SECRET_KEY.
    print("[WARNING] DJANGO_SECRET_KEY not set; using an insecure development key.")
    SECRET_KEY = "dev-insecure-paysuite-key"

# ========= Hosts / CSRF / Security =========
ALLOWED_HOSTS = [
    "127.0.0.1",
    "localhost",
    "testserver",
] + (os.getenv("ADDITIONAL_HOSTS", "").split(",") if os.getenv("ADDITIONAL_HOSTS") else [])

SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
SESSION_COOKIE_SECURE = not DEBUG
CSRF_COOKIE_SECURE = not DEBUG

# ========= Installed apps =========
INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "anymail",
    "stripe_payments",
]

# ========= Middleware =========
MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

# ========= URL / Templates / WSGI =========
ROOT_URLCONF = "paysuite.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [BASE_DIR / "templates"],
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

WSGI_APPLICATION = "paysuite.wsgi.application"

# ========= Database =========
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "db.sqlite3",
        "OPTIONS": {"timeout": 30},
    }
}

# ========= Password validation =========
AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

# ========= I18N =========
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# ========= Security headers =========
SECURE_CONTENT_TYPE_NOSNIFF = True

if not DEBUG:
    SECURE_HSTS_SECONDS = 31536000
    SECURE_HSTS_INCLUDE_SUBDOMAINS = True
    SECURE_HSTS_PRELOAD = True

SECURE_SSL_REDIRECT = not DEBUG  # redirect only if in prod

# ========= Static =========
STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

# ========= Defaults =========
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ========= Django REST framework =========
REST_FRAMEWORK = {
    "COERCE_DECIMAL_TO_STRING": True,
}

# ========= Email (order receipts + admin alerts) =========
# Mailgun through Anymail; DEBUG runs print receipts to the console instead.
EMAIL_BACKEND = os.getenv(
    "DJANGO_EMAIL_BACKEND",
    "django.core.mail.backends.console.EmailBackend" if DEBUG else "anymail.backends.mailgun.EmailBackend",
)

ANYMAIL = {
    "MAILGUN_API_KEY": os.getenv("MAILGUN_API_KEY", ""),
    "MAILGUN_SENDER_DOMAIN": os.getenv("MAILGUN_SENDER_DOMAIN", ""),
    # EU region: ANYMAIL_MAILGUN_API_URL=https://api.eu.mailgun.net/v3
    "MAILGUN_API_URL": os.getenv("ANYMAIL_MAILGUN_API_URL", "https://api.mailgun.net/v3"),
}

# Fallback sender for both notifications (see STRIPE_PAYMENTS sender keys below)
DEFAULT_FROM_EMAIL = os.getenv("DEFAULT_FROM_EMAIL", "no-reply@localhost")

print(f"[settings] EMAIL_BACKEND = {EMAIL_BACKEND}")
if EMAIL_BACKEND.startswith("anymail.") and not ANYMAIL["MAILGUN_API_KEY"]:
    print("[WARNING] MAILGUN_API_KEY not set; order emails will fail to send (payments are unaffected).")

# ========= Logging =========
LOG_DIR = BASE_DIR / 'logs'
LOG_DIR.mkdir(exist_ok=True)

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{levelname} {asctime} {module} {process:d} {thread:d} {message}',
            'style': '{',
        },
        'simple': {
            'format': '{levelname} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'file': {
            'level': 'INFO',
            'class': 'logging.handlers.RotatingFileHandler',
            'filename': LOG_DIR / 'stripe_payments.log',
            'maxBytes': 1024*1024*15,
            'backupCount': 10,
            'formatter': 'verbose',
            'encoding': 'utf-8',
        },
        'console': {
            'level': 'INFO',
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
    },
    'loggers': {
        'stripe_payments': {
            'handlers': ['file', 'console'],
            'level': 'INFO',
            'propagate': False,
        },
        'django': {
            'handlers': ['file'],
            'level': 'ERROR',
            'propagate': True,
        },
        'django.core.mail': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False,
        },
    },
}

# ========= Stripe =========
DEPLOY_BASE_URL = os.getenv("DEPLOY_BASE_URL", "http://localhost:8000").rstrip("/")

# Keys are read per request in stripe_payments.conf (mode-aware):
#   STRIPE_TEST_SECRET_KEY / STRIPE_LIVE_SECRET_KEY, legacy STRIPE_SECRET_KEY
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")

STRIPE_PAYMENTS = {
    "MODE": os.getenv("STRIPE_PAYMENTS_MODE", "test"),
    "SITE_URL": DEPLOY_BASE_URL,
    "ENABLE_TAXES": os.getenv("STRIPE_PAYMENTS_ENABLE_TAXES", "false"),
    "TAX": os.getenv("STRIPE_PAYMENTS_TAX", "0"),
    "ENABLE_CUSTOMER_NOTIFICATION": os.getenv("STRIPE_PAYMENTS_ENABLE_CUSTOMER_NOTIFICATION", "true"),
    "ENABLE_ADMIN_NOTIFICATION": os.getenv("STRIPE_PAYMENTS_ENABLE_ADMIN_NOTIFICATION", "false"),
    "CUSTOMER_NOTIFICATION_SENDER_NAME": os.getenv("STRIPE_PAYMENTS_SENDER_NAME", ""),
    "CUSTOMER_NOTIFICATION_SENDER_EMAIL": os.getenv("STRIPE_PAYMENTS_SENDER_EMAIL", DEFAULT_FROM_EMAIL),
    "ADMIN_NOTIFICATION_SENDER_EMAIL": os.getenv("STRIPE_PAYMENTS_SENDER_EMAIL", DEFAULT_FROM_EMAIL),
    "ADMIN_NOTIFICATION_RECIPIENTS": os.getenv("STRIPE_PAYMENTS_ADMIN_NOTIFICATION_RECIPIENTS", ""),
    # {"order_complete": ["dotted.path.to.callable"], "webhook": [...]}
    "SUBSCRIBERS": {},
}

"""Django settings for the forum board."""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "insecure-development-key")

DEBUG = os.environ.get("DJANGO_DEBUG", "") == "1"

ALLOWED_HOSTS = os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost").split(",")

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "board",
]

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
            ],
        },
    },
]

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
    }
}

USE_TZ = True

# Content formatter
FORMATTER_ASSET_HOST = os.environ.get("FORMATTER_ASSET_HOST", "")
FORMATTER_ONEBOX = {
    "enabled": os.environ.get("FORMATTER_ONEBOX_ENABLED", "1") == "1",
    "timeout": float(os.environ.get("FORMATTER_ONEBOX_TIMEOUT", "5")),
}

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "handlers": {
        "console": {"class": "logging.StreamHandler"},
    },
    "loggers": {
        "board": {
            "handlers": ["console"],
            "level": os.environ.get("BOARD_LOG_LEVEL", "INFO"),
        },
    },
}

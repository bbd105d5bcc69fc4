"""Django settings for tow trip planner project."""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent
PROJECT_ROOT = BASE_DIR.parent

SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "change-me-in-production")
DEBUG = os.getenv("DJANGO_DEBUG", "1") == "1"
ALLOWED_HOSTS = [host for host in os.getenv("DJANGO_ALLOWED_HOSTS", "").split(",") if host]

INSTALLED_APPS = [
    "tow_planner",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "config.urls"

WSGI_APPLICATION = "config.wsgi.application"
ASGI_APPLICATION = "config.asgi.application"

# Trips live in memory only.
DATABASES: dict[str, dict[str, object]] = {}

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True


CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "tow-planner-cache",
    }
}

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
        },
    },
    "root": {"handlers": ["console"], "level": LOG_LEVEL},
    "loggers": {
        "httpx": {"level": "WARNING"},
        "httpcore": {"level": "WARNING"},
    },
}

HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10"))
CORS_RELAY_URL = os.getenv("CORS_RELAY_URL", "")
CORS_RELAY_KEY = os.getenv("CORS_RELAY_KEY", "")

GEOCODING_BASE_URL = os.getenv("GEOCODING_BASE_URL", "https://nominatim.openstreetmap.org")
GEOCODING_USER_AGENT = os.getenv("GEOCODING_USER_AGENT", "tow-trip-planner/1.0")
GEOCODING_COUNTRY_CODE = os.getenv("GEOCODING_COUNTRY_CODE", "us")
GEOCODING_MIN_INTERVAL_SECONDS = float(os.getenv("GEOCODING_MIN_INTERVAL_SECONDS", "1.0"))
GEOCODING_RETRY_COUNT = int(os.getenv("GEOCODING_RETRY_COUNT", "3"))
GEOCODING_RETRY_DELAY_SECONDS = float(os.getenv("GEOCODING_RETRY_DELAY_SECONDS", "1.0"))
GEOCODE_CACHE_TTL_SECONDS = int(os.getenv("GEOCODE_CACHE_TTL_SECONDS", "86400"))
GEOCODE_CACHE_MAX_ENTRIES = int(os.getenv("GEOCODE_CACHE_MAX_ENTRIES", "1000"))

ROUTING_PROVIDER = os.getenv("ROUTING_PROVIDER", "osrm")
OSRM_BASE_URL = os.getenv("OSRM_BASE_URL", "https://router.project-osrm.org")
OPENROUTESERVICE_BASE_URL = os.getenv(
    "OPENROUTESERVICE_BASE_URL", "https://api.openrouteservice.org"
)
OPENROUTESERVICE_API_KEY = os.getenv("OPENROUTESERVICE_API_KEY", "")

ELEVATION_BASE_URL = os.getenv("ELEVATION_BASE_URL", "https://api.open-elevation.com")
ELEVATION_SAMPLE_POINTS = int(os.getenv("ELEVATION_SAMPLE_POINTS", "100"))

EIA_BASE_URL = os.getenv("EIA_BASE_URL", "https://api.eia.gov/v2")
EIA_API_KEY = os.getenv("EIA_API_KEY", "")
FUEL_PRICE_CACHE_TTL_SECONDS = int(os.getenv("FUEL_PRICE_CACHE_TTL_SECONDS", "21600"))
DEFAULT_GAS_PRICE = float(os.getenv("DEFAULT_GAS_PRICE", "3.50"))
DEFAULT_DIESEL_PRICE = float(os.getenv("DEFAULT_DIESEL_PRICE", "4.00"))

AVERAGE_SPEED_MPH = float(os.getenv("AVERAGE_SPEED_MPH", "65"))

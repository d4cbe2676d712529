"""
Django settings for the tracker project.

All deployment-specific values are read from the environment so the same
module serves local runs, containers and the test suite.
"""

import os
from pathlib import Path


def env_bool(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def env_int(name, default):
    return int(os.environ.get(name, default))


def env_float(name, default):
    return float(os.environ.get(name, default))


BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "dev-insecure-secret-key")

DEBUG = env_bool("DJANGO_DEBUG", False)

ALLOWED_HOSTS = [
    host.strip()
    for host in os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1").split(",")
    if host.strip()
]

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "rest_framework",
    "channels",
    "apps.core",
    "apps.orders",
    "apps.tracking",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "config.urls"

ASGI_APPLICATION = "config.asgi.application"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Database
if os.environ.get("POSTGRES_DB"):
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": os.environ["POSTGRES_DB"],
            "USER": os.environ.get("POSTGRES_USER", "postgres"),
            "PASSWORD": os.environ.get("POSTGRES_PASSWORD", ""),
            "HOST": os.environ.get("POSTGRES_HOST", "localhost"),
            "PORT": os.environ.get("POSTGRES_PORT", "5432"),
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",
        }
    }

USE_TZ = True
TIME_ZONE = "UTC"

# Cache
REDIS_URL = os.environ.get("REDIS_URL", "redis://localhost:6379/0")

CACHES = {
    "default": {
        "BACKEND": "django_redis.cache.RedisCache",
        "LOCATION": REDIS_URL,
        "OPTIONS": {
            "CLIENT_CLASS": "django_redis.client.DefaultClient",
            "SERIALIZER": "django_redis.serializers.json.JSONSerializer",
            "SOCKET_CONNECT_TIMEOUT": 2,
            "SOCKET_TIMEOUT": 2,
        },
    }
}

CACHE_ENABLED = env_bool("CACHE_ENABLED", True)
CACHE_CONNECT_ATTEMPTS = env_int("CACHE_CONNECT_ATTEMPTS", 3)
CACHE_CONNECT_DELAY_SECONDS = env_float("CACHE_CONNECT_DELAY_SECONDS", 1.0)
CACHE_TTL_ORDER = env_int("CACHE_TTL_ORDER", 300)
CACHE_TTL_TIMELINE = env_int("CACHE_TTL_TIMELINE", 300)
CACHE_TTL_RECOMMENDATIONS = env_int("CACHE_TTL_RECOMMENDATIONS", 600)
CACHE_TTL_USER_ORDERS = env_int("CACHE_TTL_USER_ORDERS", 120)

# Channels
CHANNEL_REDIS_URL = os.environ.get("CHANNEL_REDIS_URL")

if CHANNEL_REDIS_URL:
    CHANNEL_LAYERS = {
        "default": {
            "BACKEND": "channels_redis.core.RedisChannelLayer",
            "CONFIG": {"hosts": [CHANNEL_REDIS_URL]},
        }
    }
else:
    CHANNEL_LAYERS = {"default": {"BACKEND": "channels.layers.InMemoryChannelLayer"}}

# REST framework (authentication is handled by the identity service)
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": ["rest_framework.permissions.AllowAny"],
    "UNAUTHENTICATED_USER": None,
}

# Kafka
KAFKA_BOOTSTRAP_SERVERS = os.environ.get("KAFKA_BOOTSTRAP_SERVERS", "")
KAFKA_CLIENT_ID = os.environ.get("KAFKA_CLIENT_ID", "order-tracker")

# Identity service
USER_SERVICE_URL = os.environ.get("USER_SERVICE_URL", "")
USER_SERVICE_TIMEOUT = env_float("USER_SERVICE_TIMEOUT", 3.0)

# Delivery tracking simulation
TRACKING_ROUTE = [
    (28.6139, 77.2090),
    (28.6145, 77.2100),
    (28.6160, 77.2120),
]
TRACKING_DEFAULT_DESTINATION = (28.6160, 77.2120)
TRACKING_TICK_INTERVAL_SECONDS = env_float("TRACKING_TICK_INTERVAL_SECONDS", 10)
TRACKING_AVERAGE_SPEED_KMH = env_float("TRACKING_AVERAGE_SPEED_KMH", 30)
TRACKING_ARRIVAL_PROBABILITY = env_float("TRACKING_ARRIVAL_PROBABILITY", 0.25)
TRACKING_JITTER_DEGREES = env_float("TRACKING_JITTER_DEGREES", 0.0005)
TRACKING_SIMULATOR_AUTOSTART = env_bool("TRACKING_SIMULATOR_AUTOSTART", False)

# Logging
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
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
        "level": LOG_LEVEL,
    },
    "loggers": {
        "django.db.backends": {"level": "WARNING"},
        "confluent_kafka": {"level": "WARNING"},
    },
}

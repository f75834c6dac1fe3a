"""
With these settings, tests run faster.
"""

from .base import *  # noqa: F403

SECRET_KEY = "test-secret-key-not-for-production"
TEST_RUNNER = "django.test.runner.DiscoverRunner"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
        "ATOMIC_REQUESTS": True,
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

HUEY = {
    "huey_class": "huey.MemoryHuey",
    "name": "memorygrid-test",
    "immediate": True,
}

"""
CI/CD settings to run tests in CI/CD.

Same as test_settings, on PostgreSQL: row locks are real there, so the tests on concurrent operations are not skipped.
"""
from test_settings import *  # noqa

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": "atlas",
        "USER": "atlas",
        "PASSWORD": "atlas",
        "HOST": "db",
        "PORT": "5432",
    },
}

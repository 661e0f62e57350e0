from .settings import *  # noqa: F401,F403

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.MD5PasswordHasher',
]

CELERY_BROKER_URL = 'memory://'
CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True

APPRAISAL_SETTINGS = {
    **APPRAISAL_SETTINGS,  # noqa: F405
    'AUDIT_ASYNC': False,
}

# let pytest's caplog see api.* records
LOGGING['loggers']['api']['propagate'] = True  # noqa: F405

"""Development settings for the studio scheduler.

This module extends the base settings with development specific
configuration, such as enabling debug, allowing all hosts, using the
console email backend and human readable logs. Do not use these settings
in production!
"""

import structlog

from .base import *  # noqa: F401,F403
from .base import LOGGING

# Enable debug mode for development
DEBUG = True

# Allow all hosts in development
ALLOWED_HOSTS = ['*']

# Use console email backend during development
EMAIL_BACKEND = 'django.core.mail.backends.console.EmailBackend'

LOGGING["formatters"]["json"]["processor"] = structlog.dev.ConsoleRenderer()

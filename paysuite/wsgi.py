"""
WSGI config for paysuite.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "paysuite.settings")

application = get_wsgi_application()

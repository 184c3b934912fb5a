"""
WSGI config for GamePortal project.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'GamePortal.settings')

application = get_wsgi_application()

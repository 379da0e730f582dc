"""
WSGI config for the Themis project.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'themis.settings')

application = get_wsgi_application()

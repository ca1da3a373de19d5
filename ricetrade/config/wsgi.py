"""
WSGI config for the ricetrade console.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'ricetrade.config.settings')

application = get_wsgi_application()

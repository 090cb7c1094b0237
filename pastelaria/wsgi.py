"""
WSGI config for the Pastelaria project.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'pastelaria.settings')

application = get_wsgi_application()

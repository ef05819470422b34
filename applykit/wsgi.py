"""
WSGI config for the applykit project.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'applykit.settings')

application = get_wsgi_application()

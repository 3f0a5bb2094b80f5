"""WSGI entry point for the ChainHeart HTTP API."""

import os

from django.core.wsgi import get_wsgi_application

from chainheart.log import setup_logging

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "chainheart.api.settings")

setup_logging(log_level=os.getenv("LOG_LEVEL", "INFO"))

application = get_wsgi_application()

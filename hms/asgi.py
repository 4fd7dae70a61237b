"""
ASGI config for the hms project.

Each report request is served as an independent task by the ASGI
server; views stay synchronous and Django runs them in its thread pool.
"""
import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "hms.settings")

application = get_asgi_application()

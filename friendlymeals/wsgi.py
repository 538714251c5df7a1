import os

import certifi
from django.core.wsgi import get_wsgi_application

os.environ["SSL_CERT_FILE"] = certifi.where()
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'friendlymeals.settings')

application = get_wsgi_application()

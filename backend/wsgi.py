# backend/wsgi.py
from ironpress import create_app

app = create_app()

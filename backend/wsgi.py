# backend/wsgi.py
from sgpro import create_app

app = create_app()

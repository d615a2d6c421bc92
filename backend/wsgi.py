# backend/wsgi.py
from storebooks import create_app

app = create_app()

# Overview: WSGI entry point; FLASK_APP target and gunicorn/waitress module.

from dairy_api import create_app

app = create_app()

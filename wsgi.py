"""
WSGI / Flask CLI entry point.

Usage:
    gunicorn wsgi:app
    flask --app wsgi seed-plan
    flask --app wsgi db migrate -m "description"
    flask --app wsgi db upgrade
"""

from accreditation import create_app

app = create_app()

"""
WSGI / Flask-Migrate entry point.

Usage:
    flask --app wsgi db upgrade
    flask --app wsgi reconcile-day --project-id 1 --day-id 4
    gunicorn wsgi:app
"""

from deptsync import create_app

app = create_app()

"""
WSGI and Flask-Migrate / Alembic entry point.

Usage:
    flask --app wsgi db upgrade                  # apply migrations/versions
    flask --app wsgi db migrate -m "description"
    gunicorn wsgi:app
"""

from review_assigner import create_app

app = create_app()

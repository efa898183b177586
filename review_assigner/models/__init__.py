"""
Review Assigner
SQLAlchemy extension instance and model registry.

Usage:
    from review_assigner.models import db
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

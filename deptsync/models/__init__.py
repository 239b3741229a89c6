"""
Department Dependency Sync
SQLAlchemy extension instance shared by every model module.

Usage:
    from deptsync.models import db
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

"""
Idea Box
Database handle shared by all model modules.

Usage:
    from ideabox.models import db
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

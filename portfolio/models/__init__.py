"""
Service Portfolio
Database handle shared by the SQL persistence backend.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

"""
Accreditation Report Tracker
Model package.

The shared SQLAlchemy instance lives here so every model module can do
``from accreditation.models import db`` without importing the app factory.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

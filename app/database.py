"""Database extension shared by the models and helpers."""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

# extensions.py - single shared instance of the ORM
# Models and blueprints import `db` from here so the app factory can bind it once.
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

__all__ = ["db"]

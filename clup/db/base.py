# clup/db/base.py
# Shared SQLAlchemy declarative base.
# Keep this module free of model imports to avoid import cycles; models import Base from here.

from sqlalchemy.orm import declarative_base

Base = declarative_base()

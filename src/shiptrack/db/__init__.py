"""
shiptrack.db

Persistence package (SQLAlchemy async).

Responsibilities:
- Provide ORM models, engine/session setup, repositories and bootstrap data.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Swapping backends (SQLite for dev/test, PostgreSQL for prod) only touches
# `database_url`; services and repositories stay the same.

"""
shiptrack.db.repositories

Repository package (the record store adapter).

Responsibilities:
- Group data-access repositories for users and shipments.
"""

# Package marker; repositories are imported directly from submodules.


# --- Module Notes -----------------------------------------------------------
# Repositories are intentionally thin; business rules belong in services.
# They flush but never commit: the service owns the transaction boundary.

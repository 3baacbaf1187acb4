"""
shiptrack.auth

Authentication/authorization package.

Responsibilities:
- JWT helpers and validation.
- Password hashing and verification.
- Bearer token -> Principal resolution and the authorization guard.
- FastAPI auth dependencies.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Services consult `auth.guard` directly; the API layer only resolves principals.

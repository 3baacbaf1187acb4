"""
shiptrack.api

API package for the shiptrack service.

Responsibilities:
- FastAPI app factory and router modules.
- API-layer dependency wiring and error rendering.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# The API layer should remain thin: request parsing + principal resolution + delegation to services.

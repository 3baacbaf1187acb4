"""
shiptrack.services

Service-layer package (query/mutation orchestration).

Responsibilities:
- Own transaction boundaries and persistence decisions.
- Consult the authorization guard before touching the store.
- Hand committed changes to the event broadcaster.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Services should be pure Python and easily testable with a plain AsyncSession.

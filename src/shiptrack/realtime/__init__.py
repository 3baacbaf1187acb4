"""
shiptrack.realtime

Real-time change propagation.

Responsibilities:
- In-process publish/subscribe for shipment events.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# The broadcaster is owned by the app (see `api.app`), never a module-level global.

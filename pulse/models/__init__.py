"""ORM Models — SQLAlchemy declarative models for persisted entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Donors are never deleted; requests own their match audit rows

Design Decisions:
    - One file per entity
    - All models imported here so string-based relationship() references resolve
"""

from pulse.models.donor import Donor  # noqa: F401
from pulse.models.emergency_request import EmergencyRequest  # noqa: F401
from pulse.models.request_match import RequestMatch  # noqa: F401

"""SQLAlchemy models package for the race registration system.

Importing all models here ensures that SQLAlchemy's mapper registry is
populated before ``Base.metadata.create_all()`` or Alembic migrations run.
The import order follows the foreign-key dependency graph so that parent
tables are always registered before their children.

Usage from other modules:
    from app.models import Distance, EventShirt
"""

# Leaf tables
from app.models.user import User  # noqa: F401
from app.models.event import Event  # noqa: F401

# Event inventory (shared counters)
from app.models.distance import Distance  # noqa: F401
from app.models.event_shirt import EventShirt  # noqa: F401

# Bulk import audit log and the registrations it creates
from app.models.import_batch import ImportBatch  # noqa: F401
from app.models.registration import Registration  # noqa: F401

__all__ = [
    "User",
    "Event",
    "Distance",
    "EventShirt",
    "ImportBatch",
    "Registration",
]

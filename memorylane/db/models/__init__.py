from memorylane.db.models.timeline import Timeline
from memorylane.db.models.memory import Memory

__all__ = [
    "Timeline",
    "Memory",
]

from .snapshot import TrackerSnapshot

__all__ = [
    "TrackerSnapshot",
]

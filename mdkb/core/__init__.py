from .errors import InvalidName, InvalidReference, KnowledgeBaseError, PersistenceError
from .markers import MarkerGraph
from .models import Link, Marker, MetadataStore, NavigationEntry, NoteItem
from .navigation import NavigationHistory

__all__ = [
    "InvalidName",
    "InvalidReference",
    "KnowledgeBaseError",
    "PersistenceError",
    "MarkerGraph",
    "Link",
    "Marker",
    "MetadataStore",
    "NavigationEntry",
    "NoteItem",
    "NavigationHistory",
]

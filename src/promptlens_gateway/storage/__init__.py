"""
Persistent store: engine, registry, credentials and history.
"""

from .db import create_engine
from .credentials import CredentialStore, SqlCredentialStore
from .history import HistoryRepository
from .models_repo import ModelRegistry

__all__ = [
    "create_engine",
    "CredentialStore",
    "SqlCredentialStore",
    "HistoryRepository",
    "ModelRegistry",
]

"""Shared API dependencies: single import point for all routers.

Re-exports the database session and identity dependencies so that router
modules can import everything they need from one place::

    from stayhub.api.deps import get_db, get_current_identity
"""

from stayhub.auth.dependencies import Identity, get_current_identity
from stayhub.database import get_db

__all__ = [
    "Identity",
    "get_db",
    "get_current_identity",
]

"""Abstract interfaces for infrastructure abstraction."""

from app.interfaces.auth_provider import IAuthProvider
from app.interfaces.plan_repository import IPlanRepository

__all__ = [
    "IPlanRepository",
    "IAuthProvider",
]

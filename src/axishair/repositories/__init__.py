"""Repository layer for AXIS HAIR backend.

Provides data access abstractions for all domain entities.
No base classes - each repository is self-contained.
"""

from axishair.repositories.client import ClientRepository
from axishair.repositories.consultation import ConsultationRepository

__all__ = [
    "ClientRepository",
    "ConsultationRepository",
]

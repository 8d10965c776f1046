"""Client repository for AXIS HAIR backend.

Provides data access methods for Client entities.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from axishair.models.client import Client


class ClientRepository:
    """Repository for Client entities."""

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session for database operations
        """
        self.session = session

    async def get_by_id(self, client_id: UUID) -> Client | None:
        """Retrieve client by UUID.

        Args:
            client_id: Client's unique identifier

        Returns:
            Client if found, None otherwise
        """
        result = await self.session.execute(select(Client).where(Client.id == client_id))  # type: ignore[arg-type]
        return result.scalar_one_or_none()

    async def add(self, client: Client) -> Client:
        """Persist new client to database.

        Args:
            client: Client entity to persist

        Returns:
            Persisted client with generated ID
        """
        self.session.add(client)
        await self.session.flush()
        return client

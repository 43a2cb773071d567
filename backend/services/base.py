"""Base CRUD service with tenant scoping.

Service classes inherit from this. Provides standard create/read/update
with tenant scoping (multi-tenant) and, for models carrying the
soft-delete mixin, automatic filtering of deleted rows.
"""

from typing import Any, Generic, Optional, Sequence, Type, TypeVar
from uuid import uuid4

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from db.base import BaseModel

ModelType = TypeVar("ModelType", bound=BaseModel)


class BaseService(Generic[ModelType]):
    """Generic CRUD service for any SQLAlchemy model.

    Usage:
        class CampaignService(BaseService[Campaign]):
            def __init__(self, db: AsyncSession):
                super().__init__(Campaign, db)
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        self.model = model
        self.db = db

    def _live(self, query, include_deleted: bool = False):
        if not include_deleted and hasattr(self.model, "is_deleted"):
            query = query.where(self.model.is_deleted == False)  # noqa: E712
        return query

    # ─── Read ──────────────────────────────────────────────

    async def get_by_id(
        self,
        id: str,
        include_deleted: bool = False,
    ) -> Optional[ModelType]:
        """Get a single record by ID."""
        query = self._live(select(self.model).where(self.model.id == id), include_deleted)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_by_id_and_tenant(
        self,
        id: str,
        tenant_id: str,
        include_deleted: bool = False,
    ) -> Optional[ModelType]:
        """Get a single record scoped to a tenant."""
        query = select(self.model).where(
            self.model.id == id,
            self.model.tenant_id == tenant_id,
        )
        result = await self.db.execute(self._live(query, include_deleted))
        return result.scalar_one_or_none()

    async def list(
        self,
        tenant_id: Optional[str] = None,
        offset: int = 0,
        limit: int = 50,
        order_by: str = "created_at",
        order_desc: bool = True,
        filters: dict[str, Any] = None,
    ) -> tuple[Sequence[ModelType], int]:
        """List records with pagination, filtering, and sorting.

        Returns:
            Tuple of (items, total_count)
        """
        query = self._live(select(self.model))
        count_query = self._live(select(func.count()).select_from(self.model))

        if tenant_id and hasattr(self.model, "tenant_id"):
            query = query.where(self.model.tenant_id == tenant_id)
            count_query = count_query.where(self.model.tenant_id == tenant_id)

        if filters:
            for field, value in filters.items():
                if value is None or not hasattr(self.model, field):
                    continue
                col = getattr(self.model, field)
                if isinstance(value, list):
                    query = query.where(col.in_(value))
                    count_query = count_query.where(col.in_(value))
                else:
                    query = query.where(col == value)
                    count_query = count_query.where(col == value)

        if hasattr(self.model, order_by):
            col = getattr(self.model, order_by)
            query = query.order_by(col.desc() if order_desc else col.asc())

        query = query.offset(offset).limit(limit)

        result = await self.db.execute(query)
        items = result.scalars().all()

        total = (await self.db.execute(count_query)).scalar() or 0
        return items, total

    # ─── Create ────────────────────────────────────────────

    async def create(self, data: dict[str, Any]) -> ModelType:
        """Create a new record.

        Args:
            data: Dict of field values

        Returns:
            Created model instance
        """
        if "id" not in data:
            data["id"] = str(uuid4())

        instance = self.model(**data)
        self.db.add(instance)
        await self.db.flush()
        await self.db.refresh(instance)
        return instance

    # ─── Update ────────────────────────────────────────────

    async def update(
        self,
        id: str,
        data: dict[str, Any],
        tenant_id: Optional[str] = None,
    ) -> Optional[ModelType]:
        """Update a record by ID.

        Args:
            id: Record UUID
            data: Dict of fields to update (None values are skipped)
            tenant_id: Optional tenant scope

        Returns:
            Updated model instance or None if not found
        """
        if tenant_id:
            instance = await self.get_by_id_and_tenant(id, tenant_id)
        else:
            instance = await self.get_by_id(id)

        if not instance:
            return None

        for key, value in data.items():
            if value is not None and hasattr(instance, key):
                setattr(instance, key, value)

        await self.db.flush()
        await self.db.refresh(instance)
        return instance

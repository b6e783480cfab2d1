import logging
from typing import List

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from skillbridge.core.exceptions import CategoryInUseError, ConflictError, InvalidCategoryError, NotFoundError
from skillbridge.models.category import Category
from skillbridge.models.tutor_profile import Tutor
from skillbridge.schemas.category import CategoryCreate, CategoryUpdate

logger = logging.getLogger(__name__)


class CategoryService:
    """Subject categories: public listing and admin moderation"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_categories(self) -> List[Category]:
        result = await self.db.execute(select(Category).order_by(Category.name.asc()))
        return list(result.scalars().all())

    async def ensure_exists(self, category_id: str) -> None:
        """Raise InvalidCategoryError unless ``category_id`` references a category"""
        found = await self.db.scalar(select(Category.category_id).where(Category.category_id == category_id))
        if found is None:
            raise InvalidCategoryError()

    async def create_category(self, data: CategoryCreate) -> Category:
        category = Category(name=data.name.strip(), subjects=list(data.subjects))
        self.db.add(category)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError(f"Category '{data.name}' already exists.", code="CATEGORY_EXISTS")
        logger.info(f"Created category {category.category_id} ({category.name})")
        return category

    async def update_category(self, category_id: str, data: CategoryUpdate) -> Category:
        category = await self.db.scalar(
            select(Category).where(Category.category_id == category_id).with_for_update()
        )
        if category is None:
            raise NotFoundError("Category not found.")

        if data.is_set("name"):
            category.name = data.name.strip()
        if data.is_set("subjects"):
            category.subjects = list(data.subjects)

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError(f"Category '{data.name}' already exists.", code="CATEGORY_EXISTS")
        await self.db.refresh(category)
        return category

    async def delete_category(self, category_id: str) -> Category:
        category = await self.db.scalar(
            select(Category).where(Category.category_id == category_id).with_for_update()
        )
        if category is None:
            raise NotFoundError("Category not found.")

        tutor_count = await self.db.scalar(
            select(func.count()).select_from(Tutor).where(Tutor.category_id == category_id)
        )
        if tutor_count:
            raise CategoryInUseError()

        await self.db.delete(category)
        try:
            await self.db.commit()
        except IntegrityError:
            # A tutor was assigned between the count and the delete
            await self.db.rollback()
            raise CategoryInUseError()
        logger.info(f"Deleted category {category_id}")
        return category

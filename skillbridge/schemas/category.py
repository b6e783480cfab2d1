from pydantic import BaseModel, Field
from typing import ClassVar, List, Optional
from datetime import datetime

from skillbridge.schemas.common import ORMModel, PatchModel


class CategoryOut(ORMModel):
    category_id: str = Field(..., description="Category ID")
    name: str = Field(..., description="Category name")
    subjects: List[str] = Field(default_factory=list, description="Subjects in this category")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, description="Unique category name")
    subjects: List[str] = Field(default_factory=list, description="Ordered subject names")


class CategoryUpdate(PatchModel):
    NON_NULLABLE: ClassVar[frozenset] = frozenset({"name", "subjects"})

    name: Optional[str] = Field(None, min_length=1, description="New category name")
    subjects: Optional[List[str]] = Field(None, description="Replacement subject list")

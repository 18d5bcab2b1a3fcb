from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CategoryIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    parent_id: Optional[int] = None


class CategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    parent_id: Optional[int] = None
    created_at: Optional[datetime] = None


class CategoryTreeOut(CategoryOut):
    """Category with nested children for tree structure."""

    orphaned: bool = False
    children: List["CategoryTreeOut"] = []


class CategoryPathOut(BaseModel):
    id: int
    ids: List[int]
    names: List[str]
    label: str

"""
Reference catalog schemas.
"""

from pydantic import BaseModel, Field
from typing import List


class CatalogEntryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class CatalogResponse(BaseModel):
    names: List[str]

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, ConfigDict


class UnitSchema(BaseModel):
    """One sellable unit variant."""
    label: str = Field(..., min_length=1, max_length=50)
    selling_price: float = Field(..., ge=0, allow_inf_nan=False)


class ProductCreate(BaseModel):
    """Product creation schema."""
    name: str = Field(..., min_length=2, max_length=100)
    category: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    image_path: Optional[str] = None
    units: List[UnitSchema] = Field(..., min_length=1)


class ProductUpdate(BaseModel):
    """Product update schema."""
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    image_path: Optional[str] = None
    units: Optional[List[UnitSchema]] = Field(None, min_length=1)


class ProductResponse(BaseModel):
    """Product response schema."""
    id: str = Field(validation_alias="_id", serialization_alias="id")
    name: str
    category: str
    description: Optional[str] = None
    image_path: Optional[str] = None
    units: List[UnitSchema]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(populate_by_name=True)


class ProductListResponse(BaseModel):
    products: List[ProductResponse]
    current_page: int
    total_pages: int
    total_products: int

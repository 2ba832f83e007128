import math
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from warunku.core.config import settings
from warunku.db.mongo import get_db
from warunku.models.product import Product
from warunku.repositories.product_repo import ProductRepository
from warunku.schemas.product import ProductCreate, ProductListResponse, ProductResponse, ProductUpdate, UnitSchema

router = APIRouter(prefix="/products", tags=["products"])


def _to_product_response(product: Product) -> ProductResponse:
    return ProductResponse(
        id=str(product.id),
        name=product.name,
        category=product.category,
        description=product.description,
        image_path=product.image_path,
        units=[UnitSchema(label=u.label, selling_price=u.selling_price) for u in product.units],
        created_at=product.created_at,
        updated_at=product.updated_at
    )


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    product_data: ProductCreate,
    db = Depends(get_db)
):
    """Create a product with at least one unit variant."""
    repo = ProductRepository(db)
    product = await repo.create_product(product_data)
    return _to_product_response(product)


@router.get("", response_model=ProductListResponse)
async def list_products(
    search: Optional[str] = Query(None, description="Matches product name"),
    category: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db = Depends(get_db)
):
    """List products sorted by name."""
    repo = ProductRepository(db)
    products, total = await repo.list_products(search, category, skip=(page - 1) * limit, limit=limit)
    return ProductListResponse(
        products=[_to_product_response(p) for p in products],
        current_page=page,
        total_pages=math.ceil(total / limit),
        total_products=total
    )


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: str,
    db = Depends(get_db)
):
    repo = ProductRepository(db)
    product = await repo.get_product(product_id)
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return _to_product_response(product)


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: str,
    product_data: ProductUpdate,
    db = Depends(get_db)
):
    """Update a product. Debt records keep the name and label they were priced with."""
    repo = ProductRepository(db)
    product = await repo.update_product(product_id, product_data)
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return _to_product_response(product)


@router.delete("/{product_id}")
async def delete_product(
    product_id: str,
    db = Depends(get_db)
):
    repo = ProductRepository(db)
    deleted = await repo.delete_product(product_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return {"message": "Product removed successfully"}

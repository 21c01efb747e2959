"""
Endpoints de productos.

Públicos: catálogo visible en la página.
Admin: inventario completo y CRUD (límites de catálogo en core/product_service).
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from core.database import get_db
from core.dependencies import get_current_admin_user
from core import product_service
from models.products import Product
from models.user import User
from schemas.products import ProductCreate, ProductUpdate

router = APIRouter(
    prefix="/products",
    tags=["products"]
)


def _product_to_dict(product: Product) -> dict:
    return {
        "id": product.id,
        "name": product.name,
        "description": product.description,
        "type": product.type,
        "price": float(product.price),
        "image_url": product.image_url,
        "stock": product.stock,
        "min_stock": product.min_stock,
        "low_stock": product.stock is not None and product.stock <= (product.min_stock or 0),
        "is_active": product.is_active,
        "is_active_page": product.is_active_page,
        "updated_at": product.updated_at.isoformat() if product.updated_at else None,
    }


# ==================== ENDPOINTS PÚBLICOS ====================

@router.get("")
async def list_page_products(db: Session = Depends(get_db)):
    """
    Productos que se muestran en la página: activos, marcados para la
    página y con stock disponible (o ilimitado).
    """
    products = product_service.list_public_products(db)
    return {
        "success": True,
        "status_code": 200,
        "message": "Productos obtenidos exitosamente",
        "data": [_product_to_dict(p) for p in products]
    }


# ==================== ADMIN ENDPOINTS ====================
# Requieren autenticación y rol de administrador

@router.get("/all")
async def list_all_products(
    include_inactive: bool = Query(True, description="Incluir productos inactivos"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user)
):
    """Inventario completo para el panel"""
    products = product_service.list_products(db, include_inactive=include_inactive)
    return {
        "success": True,
        "status_code": 200,
        "message": "Productos obtenidos exitosamente",
        "data": {
            "products": [_product_to_dict(p) for p in products],
            "total": len(products),
            "max_products": product_service.MAX_PRODUCTS,
            "page_products": sum(1 for p in products if p.is_active_page),
            "max_page_products": product_service.MAX_PAGE_PRODUCTS,
        }
    }


@router.get("/{product_id}")
async def get_product(
    product_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user)
):
    product = product_service.get_product(db, product_id)
    return {
        "success": True,
        "status_code": 200,
        "message": "Producto obtenido exitosamente",
        "data": _product_to_dict(product)
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_product(
    product_data: ProductCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user)
):
    """
    Crear producto. Un producto sin stock nunca queda visible en la página.
    """
    product = product_service.create_product(db, product_data.model_dump())
    return {
        "success": True,
        "status_code": 201,
        "message": "Producto creado exitosamente",
        "data": _product_to_dict(product)
    }


@router.put("/{product_id}")
async def update_product(
    product_id: str,
    product_data: ProductUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user)
):
    product = product_service.update_product(db, product_id, product_data.model_dump(exclude_unset=True))
    return {
        "success": True,
        "status_code": 200,
        "message": "Producto actualizado exitosamente",
        "data": _product_to_dict(product)
    }


@router.delete("/{product_id}")
async def delete_product(
    product_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user)
):
    """
    Eliminar producto. Las facturas históricas conservan sus líneas.
    """
    product_service.delete_product(db, product_id)
    return {
        "success": True,
        "status_code": 200,
        "message": "Producto eliminado exitosamente"
    }

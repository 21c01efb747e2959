"""
Reglas de inventario y visibilidad de productos.

- stock NULL significa stock ilimitado.
- Un producto con stock <= 0 nunca se muestra en la página pública.
- Máximo MAX_PAGE_PRODUCTS productos visibles en la página y
  MAX_PRODUCTS productos en total.
"""
import logging
from typing import Any, Dict, List, Optional
from sqlalchemy import func, or_
from sqlalchemy.orm import Session
from core.exceptions import ValidationError, NotFoundError
from models.products import Product

logger = logging.getLogger(__name__)

MAX_PRODUCTS = 25
MAX_PAGE_PRODUCTS = 8


def is_out_of_stock(stock: Optional[int]) -> bool:
    return stock is not None and stock <= 0


def apply_visibility_rule(product: Product) -> None:
    """Sin stock => fuera de la página pública"""
    if is_out_of_stock(product.stock):
        product.is_active_page = False


def _ensure_page_slot_available(db: Session, exclude_id: Optional[str] = None) -> None:
    query = db.query(func.count(Product.id)).filter(Product.is_active_page.is_(True))
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)

    if query.scalar() >= MAX_PAGE_PRODUCTS:
        raise ValidationError(
            f"Espacios en la sección de página llenos. Máximo {MAX_PAGE_PRODUCTS} "
            "productos pueden mostrarse en la página"
        )


# ==================== CONSULTAS ====================

def list_public_products(db: Session) -> List[Product]:
    """Productos visibles en la página: activos, marcados para la página y con stock"""
    return db.query(Product).filter(
        Product.is_active.is_(True),
        Product.is_active_page.is_(True),
        or_(Product.stock.is_(None), Product.stock > 0)
    ).order_by(Product.name.asc()).all()


def list_products(db: Session, include_inactive: bool = False) -> List[Product]:
    query = db.query(Product)
    if not include_inactive:
        query = query.filter(Product.is_active.is_(True))
    return query.order_by(Product.created_at.desc(), Product.id.asc()).all()


def get_product(db: Session, product_id: str) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise NotFoundError("Producto no encontrado")
    return product


# ==================== ESCRITURA ====================

def create_product(db: Session, data: Dict[str, Any]) -> Product:
    """
    Crear producto respetando los límites del catálogo.

    Args:
        data: Campos del producto (id, name, price, stock, is_active_page...)
    """
    if db.query(func.count(Product.id)).scalar() >= MAX_PRODUCTS:
        raise ValidationError(f"Se ha alcanzado el límite máximo de {MAX_PRODUCTS} productos")

    if db.query(Product).filter(Product.id == data["id"]).first():
        raise ValidationError(f"Ya existe un producto con el ID {data['id']}")

    product = Product(**data)
    apply_visibility_rule(product)

    if product.is_active_page:
        _ensure_page_slot_available(db)

    db.add(product)
    db.commit()
    db.refresh(product)

    logger.info(f"Producto {product.id} creado (stock={product.stock}, página={product.is_active_page})")
    return product


def update_product(db: Session, product_id: str, data: Dict[str, Any]) -> Product:
    """
    Actualizar producto. El propio producto no cuenta para el límite de página.
    """
    product = get_product(db, product_id)

    stock = data["stock"] if "stock" in data else product.stock
    on_page = data.get("is_active_page", product.is_active_page)
    if is_out_of_stock(stock):
        on_page = False

    if on_page:
        _ensure_page_slot_available(db, exclude_id=product.id)

    for field, value in data.items():
        setattr(product, field, value)
    product.is_active_page = on_page

    db.commit()
    db.refresh(product)

    logger.info(f"Producto {product.id} actualizado")
    return product


def delete_product(db: Session, product_id: str) -> None:
    """
    Eliminar producto. Las líneas de factura que lo referencian se conservan
    con su nombre y precio.
    """
    product = get_product(db, product_id)
    db.delete(product)
    db.commit()
    logger.info(f"Producto {product_id} eliminado")


# ==================== STOCK ====================

def reduce_product_stock(db: Session, product_id: str, quantity: int) -> Product:
    """
    Descontar stock dentro de la transacción del llamador (no hace commit).

    - Bloquea la fila del producto (FOR UPDATE)
    - Stock NULL: no hace nada
    - Stock insuficiente: ValidationError sin modificar nada
    - Si el stock queda en 0 o menos, se retira de la página
    """
    product = db.query(Product).filter(Product.id == product_id).with_for_update().first()

    if not product:
        raise ValidationError(f"Producto {product_id} no encontrado")

    if product.stock is None:
        return product

    if quantity > product.stock:
        raise ValidationError(
            f'Stock insuficiente para el producto "{product.name}". '
            f"Stock disponible: {product.stock}, solicitado: {quantity}"
        )

    product.stock -= quantity
    apply_visibility_rule(product)
    db.flush()

    logger.info(f"Stock de {product.id} reducido en {quantity} (queda {product.stock})")
    return product


def restore_product_stock(db: Session, product_id: str, quantity: int) -> None:
    """
    Devolver stock descontado previamente (edición de factura).
    Productos eliminados o con stock ilimitado se ignoran.
    """
    product = db.query(Product).filter(Product.id == product_id).with_for_update().first()

    if not product or product.stock is None:
        return

    product.stock += quantity
    db.flush()

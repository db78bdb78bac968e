"""
Catalog access: the store products a campaign can link to.
"""
from typing import List

from sqlalchemy.orm import Session

from ..models.product import Product

ACTIVE_STATUS = "active"


def get_catalog(db: Session, store_id: str) -> List[Product]:
    """Active products of a store in stable catalog order."""
    return (
        db.query(Product)
        .filter(Product.store_id == store_id, Product.status == ACTIVE_STATUS)
        .order_by(Product.position.asc(), Product.created_at.asc(), Product.id.asc())
        .all()
    )

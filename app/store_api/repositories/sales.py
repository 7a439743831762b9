from sqlalchemy.orm import Session, joinedload, selectinload
from typing import List

from .. import models


def get_sales_by_seller(db: Session, seller_id: int) -> List[models.Sale]:
    """История продаж продавца вместе с позициями и данными продавца."""
    return (
        db.query(models.Sale)
        .options(selectinload(models.Sale.items), joinedload(models.Sale.seller))
        .filter(models.Sale.seller_id == seller_id)
        .order_by(models.Sale.sale_date, models.Sale.id)
        .all()
    )

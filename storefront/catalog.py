"""Catalog store: product listing and the one-time seed."""

import json
from typing import List, Optional, Sequence

import structlog
from pydantic import TypeAdapter, ValidationError
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .errors import InvalidInput, StorageFailure
from .models import Product
from .schemas import ProductSeed

logger = structlog.get_logger(__name__)

DEFAULT_PRODUCTS = [
    ProductSeed(name="WFX Strawberry Delight", price=3.0, image="strawberry.svg"),
    ProductSeed(name="WFX Dark Chocolate", price=2.5, image="chocolate.svg"),
    ProductSeed(name="WFX Candy Crunch", price=2.75, image="candy.svg"),
    ProductSeed(name="WFX Berry Burst", price=3.0, image="berry.svg"),
    ProductSeed(name="WFX Salted Caramel", price=2.5, image="caramel.svg"),
    ProductSeed(name="WFX Orange Zest", price=2.5, image="orange.svg"),
]

_seed_list = TypeAdapter(List[ProductSeed])


def load_seed_products(raw_json: Optional[str]) -> List[ProductSeed]:
    """Parse SEED_PRODUCTS_JSON, falling back to the default catalog."""
    if not raw_json:
        return list(DEFAULT_PRODUCTS)
    try:
        return _seed_list.validate_python(json.loads(raw_json))
    except (ValueError, ValidationError) as e:
        raise InvalidInput(f"Invalid SEED_PRODUCTS_JSON: {e}") from e


def list_products(session: Session) -> List[Product]:
    """Return every product in insertion order."""
    try:
        return list(session.scalars(select(Product).order_by(Product.id)))
    except SQLAlchemyError as e:
        logger.error("product_list_failed", error=str(e))
        raise StorageFailure("Error fetching products") from e


def seed_if_empty(session: Session, defaults: Sequence[ProductSeed]) -> int:
    """Insert `defaults` only when the catalog has no rows. Returns the number inserted."""
    try:
        count = session.scalar(select(func.count()).select_from(Product))
        if count:
            logger.info("catalog_seed_skipped", existing=count)
            return 0

        session.add_all(Product(name=p.name, price=p.price, image=p.image) for p in defaults)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("catalog_seed_failed", error=str(e))
        raise StorageFailure("Error seeding products") from e

    logger.info("catalog_seeded", inserted=len(defaults))
    return len(defaults)

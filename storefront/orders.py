"""Order service: validate a submitted cart, price it and persist the order."""

import json
from typing import Iterable, List, NamedTuple, Optional, Sequence, Union

import structlog
from pydantic import TypeAdapter, ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .errors import EmptyCart, InvalidInput, StorageFailure
from .models import Order, OrderItem, Product
from .schemas import CartItem

logger = structlog.get_logger(__name__)

_cart_items = TypeAdapter(List[CartItem])


class PricedLine(NamedTuple):
    name: str
    price: float
    quantity: int


def order_total(lines: Iterable) -> float:
    """Sum of price * quantity over anything with those two attributes."""
    return sum(line.price * line.quantity for line in lines)


def _validate_items(raw) -> List[CartItem]:
    if not isinstance(raw, (list, tuple)):
        raise InvalidInput()
    try:
        return _cart_items.validate_python(list(raw))
    except ValidationError as e:
        raise InvalidInput() from e


def parse_cart(cart_data: Optional[str]) -> List[CartItem]:
    """Decode the `cartData` form field. A missing field is an empty cart."""
    try:
        raw = json.loads(cart_data or "[]")
    except ValueError as e:
        raise InvalidInput() from e
    return _validate_items(raw)


class OrderService:
    """Submits orders against one session.

    With trust_client_prices off, each line is re-priced from the catalog by
    product id and the client's name/price are ignored.
    """

    def __init__(self, session: Session, trust_client_prices: bool = False):
        self.session = session
        self.trust_client_prices = trust_client_prices

    def submit_order(
        self,
        buyer_name: str,
        buyer_address: str,
        cart_items: Union[str, Sequence[Union[CartItem, dict]], None],
    ) -> int:
        """Validate, total and atomically persist an order. Returns the new order id."""
        if cart_items is None or isinstance(cart_items, str):
            items = parse_cart(cart_items)
        else:
            items = _validate_items(cart_items)

        if not items:
            raise EmptyCart()

        buyer_name = (buyer_name or "").strip()
        buyer_address = (buyer_address or "").strip()
        if not buyer_name or not buyer_address:
            raise InvalidInput("Name and address are required")

        lines = items if self.trust_client_prices else self._price_from_catalog(items)
        total = order_total(lines)

        order = Order(
            name=buyer_name,
            address=buyer_address,
            total=total,
            items=[
                OrderItem(product_name=line.name, product_price=line.price, quantity=line.quantity)
                for line in lines
            ],
        )
        try:
            self.session.add(order)
            self.session.commit()
            order_id = order.id
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("order_failed", buyer=buyer_name, items=len(lines), total=total, error=str(e))
            raise StorageFailure("Error processing order") from e

        logger.info("order_submitted", order_id=order_id, items=len(lines), total=total)
        return order_id

    def _price_from_catalog(self, items: List[CartItem]) -> List[PricedLine]:
        if any(item.id is None for item in items):
            raise InvalidInput("Unknown product in cart")

        ids = sorted({item.id for item in items})
        try:
            products = {
                p.id: p for p in self.session.scalars(select(Product).where(Product.id.in_(ids)))
            }
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("order_pricing_failed", error=str(e))
            raise StorageFailure("Error processing order") from e

        lines = []
        for item in items:
            product = products.get(item.id)
            if product is None:
                raise InvalidInput("Unknown product in cart")
            if product.price != item.price:
                logger.warning("client_price_mismatch", product_id=product.id,
                               client_price=item.price, catalog_price=product.price)
            lines.append(PricedLine(product.name, product.price, item.quantity))
        return lines

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from storefront.errors import EmptyCart, ErrorKind, InvalidInput, StorageFailure
from storefront.models import Order, OrderItem
from storefront.orders import OrderService, order_total, parse_cart
from storefront.schemas import MAX_QUANTITY, CartItem


def _count(session, model):
    return session.scalar(select(func.count()).select_from(model))


def _assert_nothing_persisted(database):
    fresh = database.session()
    try:
        assert _count(fresh, Order) == 0
        assert _count(fresh, OrderItem) == 0
    finally:
        fresh.close()


class TestParseCart:
    def test_missing_field_is_an_empty_cart(self):
        assert parse_cart(None) == []
        assert parse_cart("") == []

    def test_parses_items(self):
        items = parse_cart('[{"id": 2, "name": "WFX Dark Chocolate", "price": 2.5, "quantity": 3}]')

        assert items == [CartItem(id=2, name="WFX Dark Chocolate", price=2.5, quantity=3)]

    def test_quantity_defaults_to_one(self):
        assert parse_cart('[{"name": "Mint", "price": 1}]')[0].quantity == 1

    def test_largest_quantity_accepted(self):
        assert parse_cart('[{"name": "Mint", "price": 1, "quantity": 2147483647}]')[0].quantity == MAX_QUANTITY

    @pytest.mark.parametrize(
        "cart_data",
        [
            "{not json",
            '{"name": "Mint", "price": 1}',
            '"a string"',
            '[{"name": "Mint", "price": 1, "quantity": 0}]',
            '[{"name": "Mint", "price": -2, "quantity": 1}]',
            '[{"price": 1, "quantity": 1}]',
            "[1, 2, 3]",
            '[{"name": "Mint", "price": 1, "quantity": 2147483648}]',
            '[{"name": "Mint", "price": Infinity, "quantity": 1}]',
            '[{"name": "Mint", "price": NaN, "quantity": 1}]',
        ],
    )
    def test_malformed_cart(self, cart_data):
        with pytest.raises(InvalidInput) as exc:
            parse_cart(cart_data)
        assert exc.value.kind is ErrorKind.INVALID_INPUT
        assert exc.value.status_code == 400


def test_order_total():
    items = [
        CartItem(name="A", price=2.5, quantity=3),
        CartItem(name="B", price=0.1, quantity=7),
        CartItem(name="C", price=0, quantity=4),
    ]

    assert order_total(items) == pytest.approx(8.2)
    assert order_total([]) == 0


class TestSubmitOrderWithClientPrices:
    def test_total_is_sum_of_lines(self, session):
        service = OrderService(session, trust_client_prices=True)
        cart = [
            {"name": "WFX Candy Crunch", "price": 2.75, "quantity": 2},
            {"name": "WFX Orange Zest", "price": 2.5, "quantity": 1},
            {"name": "WFX Berry Burst", "price": 3.0, "quantity": 5},
        ]

        order_id = service.submit_order("Bob", "2 Side St", cart)

        order = session.get(Order, order_id)
        assert order.total == pytest.approx(2.75 * 2 + 2.5 + 3.0 * 5)
        assert order.total == pytest.approx(sum(i.product_price * i.quantity for i in order.items))
        assert len(order.items) == 3

    def test_items_snapshot_client_values(self, session):
        service = OrderService(session, trust_client_prices=True)

        order_id = service.submit_order("Bob", "2 Side St", '[{"name": "Custom", "price": 9.99, "quantity": 2}]')

        item = session.get(Order, order_id).items[0]
        assert (item.product_name, item.product_price, item.quantity) == ("Custom", 9.99, 2)

    @pytest.mark.parametrize("price", [float("inf"), float("nan")])
    def test_non_finite_price_is_rejected(self, session, database, price):
        service = OrderService(session, trust_client_prices=True)

        with pytest.raises(InvalidInput):
            service.submit_order("Bob", "2 Side St", [{"name": "X", "price": price, "quantity": 1}])
        _assert_nothing_persisted(database)

    def test_oversized_quantity_is_rejected(self, session, database):
        service = OrderService(session, trust_client_prices=True)

        with pytest.raises(InvalidInput):
            service.submit_order("Bob", "2 Side St", [{"name": "X", "price": 1, "quantity": 10**20}])
        _assert_nothing_persisted(database)

    def test_created_at_is_set(self, session):
        order_id = OrderService(session, trust_client_prices=True).submit_order(
            "Bob", "2 Side St", [{"name": "A", "price": 1, "quantity": 1}]
        )

        assert session.get(Order, order_id).created_at is not None


class TestSubmitOrderWithCatalogPrices:
    def test_end_to_end_example(self, seeded_session):
        service = OrderService(seeded_session)
        cart = [{"id": 2, "name": "WFX Dark Chocolate", "price": 2.50, "quantity": 3}]

        order_id = service.submit_order("Alice", "1 Main St", cart)

        order = seeded_session.get(Order, order_id)
        assert order.name == "Alice"
        assert order.address == "1 Main St"
        assert order.total == pytest.approx(7.50)
        assert [(i.product_name, i.product_price, i.quantity) for i in order.items] == [
            ("WFX Dark Chocolate", 2.5, 3)
        ]

    def test_client_price_is_ignored(self, seeded_session):
        cart = [{"id": 2, "name": "Cheap Chocolate", "price": 0.01, "quantity": 4}]

        order_id = OrderService(seeded_session).submit_order("Mallory", "3 Low Rd", cart)

        order = seeded_session.get(Order, order_id)
        assert order.total == pytest.approx(10.0)
        assert order.items[0].product_name == "WFX Dark Chocolate"
        assert order.items[0].product_price == 2.5

    def test_repeated_product_lines(self, seeded_session):
        cart = [
            {"id": 1, "name": "x", "price": 3.0, "quantity": 1},
            {"id": 1, "name": "x", "price": 3.0, "quantity": 2},
        ]

        order_id = OrderService(seeded_session).submit_order("Alice", "1 Main St", cart)

        assert seeded_session.get(Order, order_id).total == pytest.approx(9.0)

    @pytest.mark.parametrize(
        "cart",
        [
            [{"id": 999, "name": "Ghost", "price": 1.0, "quantity": 1}],
            [{"name": "No Id", "price": 1.0, "quantity": 1}],
        ],
    )
    def test_unknown_product_is_rejected(self, seeded_session, database, cart):
        with pytest.raises(InvalidInput):
            OrderService(seeded_session).submit_order("Alice", "1 Main St", cart)
        _assert_nothing_persisted(database)


class TestSubmitOrderValidation:
    def test_empty_cart(self, session, database):
        with pytest.raises(EmptyCart) as exc:
            OrderService(session).submit_order("Alice", "1 Main St", [])
        assert exc.value.message == "Cart is empty"
        _assert_nothing_persisted(database)

    def test_empty_cart_string(self, session, database):
        with pytest.raises(EmptyCart):
            OrderService(session).submit_order("Alice", "1 Main St", "[]")
        _assert_nothing_persisted(database)

    def test_malformed_cart_data(self, session, database):
        with pytest.raises(InvalidInput) as exc:
            OrderService(session).submit_order("Alice", "1 Main St", "[{broken")
        assert exc.value.message == "Invalid cart data"
        _assert_nothing_persisted(database)

    def test_cart_validated_before_buyer(self, session):
        with pytest.raises(EmptyCart):
            OrderService(session).submit_order("", "", [])

    @pytest.mark.parametrize("name, address", [("", "1 Main St"), ("Alice", "   "), (None, "1 Main St")])
    def test_buyer_fields_required(self, seeded_session, database, name, address):
        cart = [{"id": 2, "name": "WFX Dark Chocolate", "price": 2.5, "quantity": 1}]

        with pytest.raises(InvalidInput):
            OrderService(seeded_session).submit_order(name, address, cart)
        _assert_nothing_persisted(database)


class TestAtomicity:
    def test_failed_commit_leaves_no_rows(self, seeded_session, database, monkeypatch):
        def flush_then_fail():
            # Header and items reach the database before the failure.
            seeded_session.flush()
            raise OperationalError("COMMIT", {}, Exception("connection lost"))

        monkeypatch.setattr(seeded_session, "commit", flush_then_fail)
        cart = [
            {"id": 1, "name": "WFX Strawberry Delight", "price": 3.0, "quantity": 1},
            {"id": 2, "name": "WFX Dark Chocolate", "price": 2.5, "quantity": 2},
        ]

        with pytest.raises(StorageFailure) as exc:
            OrderService(seeded_session).submit_order("Alice", "1 Main St", cart)

        assert exc.value.message == "Error processing order"
        assert exc.value.status_code == 500
        assert "connection lost" not in exc.value.message
        _assert_nothing_persisted(database)

    def test_deleting_order_deletes_items(self, seeded_session):
        cart = [{"id": 3, "name": "WFX Candy Crunch", "price": 2.75, "quantity": 2}]
        order_id = OrderService(seeded_session).submit_order("Alice", "1 Main St", cart)

        seeded_session.delete(seeded_session.get(Order, order_id))
        seeded_session.commit()

        assert _count(seeded_session, Order) == 0
        assert _count(seeded_session, OrderItem) == 0

import json

import pytest
from fulfillment.notification import get_broadcaster, get_chat_channel
from fulfillment.order.creation import CreateOrder
from fulfillment.stock.management import RegisterProduct
from protean import current_domain


@pytest.fixture()
def broadcaster():
    return get_broadcaster()


@pytest.fixture()
def chat():
    return get_chat_channel()


@pytest.fixture()
def register_product():
    """Factory: register a product and return its id."""

    def _register(sku="SKU-001", name="Widget", initial_stock=10):
        return current_domain.process(
            RegisterProduct(sku=sku, name=name, initial_stock=initial_stock, actor_id="user-admin"),
            asynchronous=False,
        )

    return _register


@pytest.fixture()
def place_order():
    """Factory: create an order and return its id."""

    def _place(items, customer_id="cust-001", order_number=None):
        result = current_domain.process(
            CreateOrder(
                customer_id=customer_id,
                items=json.dumps(items),
                order_number=order_number,
                actor_id="user-front",
            ),
            asynchronous=False,
        )
        return result.order_id

    return _place

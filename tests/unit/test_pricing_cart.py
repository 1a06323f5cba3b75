import pytest

from teashop.errors import InvalidCart
from teashop.pricing.cart import parse_cart, parse_quantity
from teashop.pricing.models import CartItem


@pytest.mark.parametrize("raw, expected", [(1, 1), ("2", 2), (3.0, 3), (" 4 ", 4)])
def test_parse_quantity_ok(raw, expected):
    assert parse_quantity(raw) == expected

@pytest.mark.parametrize("raw", [0, -1, "0", 2.5, "abc", None, True])
def test_parse_quantity_rejects(raw):
    with pytest.raises(InvalidCart):
        parse_quantity(raw)

def test_parse_cart_keeps_order_and_cleans_fields():
    cart = parse_cart([
        {"productId": "B", "quantity": 2, "size": " reg "},
        {"id": "A", "quantity": "1", "size": "large", "category": "tea"},
    ])
    assert cart == [
        CartItem(product_id="B", quantity=2, size="reg", category=None),
        CartItem(product_id="A", quantity=1, size="large", category="tea"),
    ]

def test_parse_cart_empty():
    with pytest.raises(InvalidCart) as exc:
        parse_cart([])
    assert exc.value.code == "invalid_cart"

def test_parse_cart_missing_product_id():
    with pytest.raises(InvalidCart):
        parse_cart([{"quantity": 1}])

def test_parse_cart_one_bad_line_rejects_everything():
    with pytest.raises(InvalidCart):
        parse_cart([
            {"productId": "A", "quantity": 1},
            {"productId": "B", "quantity": 0},
        ])

def test_parse_cart_non_dict_line():
    with pytest.raises(InvalidCart):
        parse_cart(["A"])

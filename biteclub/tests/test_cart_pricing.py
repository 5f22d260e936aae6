from decimal import Decimal
from types import SimpleNamespace

import pytest

from biteclub.app.domain import ValidationError
from biteclub.app.pricing import CartLine, price_cart

BURGER_MODIFIERS = [
    {
        "id": "size",
        "name": "Size",
        "required": True,
        "modifiers": [
            {"id": "reg", "name": "Regular", "price": "0.00"},
            {"id": "lg", "name": "Large", "price": "1.50"},
        ],
    },
    {
        "id": "extras",
        "name": "Extras",
        "multi_select": True,
        "max_selections": 3,
        "modifiers": [
            {"id": "cheese", "name": "Cheese", "price": "0.75"},
            {"id": "bacon", "name": "Bacon", "price": "1.25"},
            {"id": "egg", "name": "Egg", "price": "1.00"},
            {"id": "onion", "name": "Onion", "price": "0.50"},
            {"id": "truffle", "name": "Truffle", "price": "4.00", "available": False},
        ],
    },
]

MENU = {
    "burger": SimpleNamespace(
        id="burger",
        restaurant_id="r1",
        name="Burger",
        price=Decimal("10.00"),
        available=True,
        modifiers=BURGER_MODIFIERS,
    ),
    "wrap": SimpleNamespace(
        id="wrap",
        restaurant_id="r1",
        name="Wrap",
        price=Decimal("5.00"),
        available=True,
        modifiers=[],
    ),
    "soup": SimpleNamespace(
        id="soup",
        restaurant_id="r1",
        name="Soup",
        price=Decimal("4.00"),
        available=False,
        modifiers=[],
    ),
    "fries": SimpleNamespace(
        id="fries",
        restaurant_id="r2",
        name="Fries",
        price=Decimal("3.00"),
        available=True,
        modifiers=[],
    ),
}


def _sel(group, modifier):
    return {"group_id": group, "modifier_id": modifier}


def test_totals_are_recomputed_from_menu_prices():
    lines = [
        CartLine(
            "burger",
            2,
            [_sel("size", "lg"), _sel("extras", "cheese"), _sel("extras", "bacon")],
        ),
        CartLine("wrap", 1),
    ]
    cart = price_cart("r1", lines, MENU)
    burger = cart.lines[0]
    assert burger.unit_price == Decimal("10.00")
    # (10.00 + 1.50 + 0.75 + 1.25) * 2
    assert burger.total_price == Decimal("27.00")
    assert [m["modifier"] for m in burger.modifiers] == ["Large", "Cheese", "Bacon"]
    assert cart.subtotal == Decimal("32.00")


def test_empty_cart_is_rejected():
    with pytest.raises(ValidationError) as exc:
        price_cart("r1", [], MENU)
    assert exc.value.code == "EMPTY_CART"


@pytest.mark.parametrize(
    "line, code",
    [
        (CartLine("wrap", 0), "INVALID_QUANTITY"),
        (CartLine("wrap", -2), "INVALID_QUANTITY"),
        (CartLine("wrap", True), "INVALID_QUANTITY"),
        (CartLine("wrap", 100), "INVALID_QUANTITY"),
        (CartLine("wrap", 10**30), "INVALID_QUANTITY"),
        (CartLine("ghost", 1), "UNKNOWN_ITEM"),
        (CartLine("fries", 1), "UNKNOWN_ITEM"),
        (CartLine("soup", 1), "ITEM_UNAVAILABLE"),
        (CartLine("burger", 1), "MODIFIER_REQUIRED"),
        (CartLine("burger", 1, [_sel("sauce", "bbq")]), "UNKNOWN_MODIFIER_GROUP"),
        (CartLine("burger", 1, [_sel("size", "xl")]), "UNKNOWN_MODIFIER"),
        (
            CartLine("burger", 1, [_sel("size", "reg"), _sel("extras", "truffle")]),
            "MODIFIER_UNAVAILABLE",
        ),
        (
            CartLine("burger", 1, [_sel("size", "reg"), _sel("size", "reg")]),
            "DUPLICATE_MODIFIER",
        ),
        (
            CartLine("burger", 1, [_sel("size", "reg"), _sel("size", "lg")]),
            "TOO_MANY_MODIFIERS",
        ),
        (
            CartLine(
                "burger",
                1,
                [
                    _sel("size", "reg"),
                    _sel("extras", "cheese"),
                    _sel("extras", "bacon"),
                    _sel("extras", "egg"),
                    _sel("extras", "onion"),
                ],
            ),
            "TOO_MANY_MODIFIERS",
        ),
    ],
)
def test_invalid_lines_are_rejected(line, code):
    with pytest.raises(ValidationError) as exc:
        price_cart("r1", [line], MENU)
    assert exc.value.code == code


def test_optional_group_may_be_left_empty():
    cart = price_cart("r1", [CartLine("burger", 1, [_sel("size", "reg")])], MENU)
    assert cart.subtotal == Decimal("10.00")


def _menu_with_price(price):
    item = SimpleNamespace(
        id="banquet",
        restaurant_id="r1",
        name="Banquet",
        price=price,
        available=True,
        modifiers=[],
    )
    return {"banquet": item}


def test_menu_price_past_column_range_is_rejected():
    with pytest.raises(ValidationError) as exc:
        price_cart("r1", [CartLine("banquet", 1)], _menu_with_price("1e30"))
    assert exc.value.code == "INVALID_AMOUNT"


def test_subtotal_past_column_range_is_rejected():
    menu = _menu_with_price(Decimal("60000000.00"))
    with pytest.raises(ValidationError) as exc:
        price_cart("r1", [CartLine("banquet", 2)], menu)
    assert exc.value.code == "INVALID_AMOUNT"

"""Server-side cart pricing.

Client-submitted prices and totals are ignored. Every line is re-priced from
the canonical menu item and modifier prices, and modifier selections are
checked against each group's required/min/max rules.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Sequence

from ..domain.errors import ValidationError
from ..money import ZERO, check_bounds, quantize

# per line; larger orders go through catering
MAX_QUANTITY = 99


@dataclass(frozen=True)
class CartLine:
    """One line as submitted by the client."""

    menu_item_id: str
    quantity: int
    selected_modifiers: Sequence[Mapping[str, Any]] = ()
    special_instructions: str | None = None


@dataclass(frozen=True)
class PricedLine:
    menu_item_id: str
    name: str
    quantity: int
    unit_price: Decimal
    modifiers: list[dict] = field(default_factory=list)
    special_instructions: str | None = None

    @property
    def modifiers_total(self) -> Decimal:
        return sum((Decimal(m["price"]) for m in self.modifiers), ZERO)

    @property
    def total_price(self) -> Decimal:
        return quantize((self.unit_price + self.modifiers_total) * self.quantity)


@dataclass(frozen=True)
class PricedCart:
    lines: list[PricedLine]

    @property
    def subtotal(self) -> Decimal:
        return quantize(sum((line.total_price for line in self.lines), ZERO))


def _price(value: Any, what: str) -> Decimal:
    try:
        amount = Decimal(str(value if value is not None else 0))
    except InvalidOperation as exc:
        raise ValidationError("INVALID_MENU_PRICE", f"{what} has an invalid price") from exc
    if not amount.is_finite():
        raise ValidationError("INVALID_MENU_PRICE", f"{what} has an invalid price")
    if amount < ZERO:
        raise ValidationError("INVALID_MENU_PRICE", f"{what} has a negative price")
    return check_bounds(amount, f"{what} price")


def _group_bounds(group: Mapping[str, Any]) -> tuple[int, int | None]:
    required = bool(group.get("required"))
    min_sel = group.get("min_selections")
    max_sel = group.get("max_selections")
    lower = int(min_sel) if min_sel is not None else (1 if required else 0)
    if required:
        lower = max(lower, 1)
    if max_sel is not None:
        upper: int | None = int(max_sel)
    elif group.get("multi_select"):
        upper = None
    else:
        upper = 1
    return lower, upper


def _select_modifiers(item: Any, selected: Sequence[Mapping[str, Any]]) -> list[dict]:
    groups = {str(g.get("id")): g for g in (item.modifiers or [])}
    chosen: list[dict] = []
    counts: dict[str, int] = {gid: 0 for gid in groups}
    seen: set[tuple[str, str]] = set()

    for sel in selected:
        group_id = str(sel.get("group_id", ""))
        modifier_id = str(sel.get("modifier_id", ""))
        group = groups.get(group_id)
        if group is None:
            raise ValidationError(
                "UNKNOWN_MODIFIER_GROUP",
                f"{item.name} has no modifier group {group_id!r}",
            )
        modifier = next(
            (m for m in group.get("modifiers", []) if str(m.get("id")) == modifier_id),
            None,
        )
        if modifier is None:
            raise ValidationError(
                "UNKNOWN_MODIFIER",
                f"{group.get('name', group_id)} has no option {modifier_id!r}",
            )
        if not modifier.get("available", True):
            raise ValidationError(
                "MODIFIER_UNAVAILABLE", f"{modifier.get('name')} is unavailable"
            )
        if (group_id, modifier_id) in seen:
            raise ValidationError(
                "DUPLICATE_MODIFIER", f"{modifier.get('name')} selected twice"
            )
        seen.add((group_id, modifier_id))
        counts[group_id] += 1
        chosen.append(
            {
                "group_id": group_id,
                "group": group.get("name"),
                "modifier_id": modifier_id,
                "modifier": modifier.get("name"),
                "price": str(_price(modifier.get("price"), str(modifier.get("name")))),
            }
        )

    for gid, group in groups.items():
        lower, upper = _group_bounds(group)
        count = counts[gid]
        if count < lower:
            raise ValidationError(
                "MODIFIER_REQUIRED",
                f"Select at least {lower} option(s) for {group.get('name', gid)}",
                details={"menu_item_id": item.id, "group_id": gid},
            )
        if upper is not None and count > upper:
            raise ValidationError(
                "TOO_MANY_MODIFIERS",
                f"Select at most {upper} option(s) for {group.get('name', gid)}",
                details={"menu_item_id": item.id, "group_id": gid},
            )
    return chosen


def price_cart(
    restaurant_id: str,
    lines: Iterable[CartLine],
    menu_items: Mapping[str, Any],
) -> PricedCart:
    """Validate ``lines`` against ``menu_items`` and return priced lines.

    ``menu_items`` maps ids to menu rows (anything exposing ``id``,
    ``restaurant_id``, ``name``, ``price``, ``available`` and ``modifiers``).
    """

    lines = list(lines)
    if not lines:
        raise ValidationError("EMPTY_CART", "Cart is empty")

    priced: list[PricedLine] = []
    for line in lines:
        qty = line.quantity
        whole = isinstance(qty, int) and not isinstance(qty, bool)
        if not whole or not 1 <= qty <= MAX_QUANTITY:
            raise ValidationError(
                "INVALID_QUANTITY",
                f"Quantity must be a whole number from 1 to {MAX_QUANTITY}",
            )
        item = menu_items.get(line.menu_item_id)
        if item is None or item.restaurant_id != restaurant_id:
            raise ValidationError(
                "UNKNOWN_ITEM",
                f"Menu item {line.menu_item_id!r} is not on this restaurant's menu",
            )
        if not item.available:
            raise ValidationError("ITEM_UNAVAILABLE", f"{item.name} is unavailable")
        priced.append(
            PricedLine(
                menu_item_id=item.id,
                name=item.name,
                quantity=qty,
                unit_price=_price(item.price, item.name),
                modifiers=_select_modifiers(item, line.selected_modifiers),
                special_instructions=line.special_instructions,
            )
        )
    cart = PricedCart(lines=priced)
    check_bounds(cart.subtotal, "cart subtotal")
    return cart

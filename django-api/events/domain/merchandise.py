"""Merchandise item definitions and per-participant purchase limits."""

from collections.abc import Iterable, Mapping
from decimal import Decimal, InvalidOperation
from typing import Any

from events.domain.models import MerchandiseItem
from events.domain.value_objects import Capacity, Money


class ItemDefinitionError(ValueError):
    def __init__(self, violations: list[str]) -> None:
        super().__init__("; ".join(violations))
        self.violations = violations


def _as_int(raw: Any, default: int) -> int | None:
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


def normalize_items(raw_items: Iterable[Mapping[str, Any] | MerchandiseItem]) -> tuple[MerchandiseItem, ...]:
    """Build MerchandiseItems from raw definitions.

    Raises:
        ItemDefinitionError: With every rule broken across all items.
    """
    items: list[MerchandiseItem] = []
    violations: list[str] = []
    seen: set[str] = set()

    for index, raw in enumerate(raw_items or ()):
        if isinstance(raw, MerchandiseItem):
            items.append(raw)
            seen.add(raw.sku)
            continue

        sku = str(raw.get("sku") or "").strip()
        name = str(raw.get("name") or "").strip()
        label = sku or f"#{index + 1}"
        if not sku:
            violations.append(f"Item {label} is missing sku")
        elif sku in seen:
            violations.append(f"Duplicate item sku: {sku}")
        seen.add(sku)
        if not name:
            violations.append(f"Item {label} is missing a name")

        try:
            price = Decimal(str(raw.get("price", "0")))
        except InvalidOperation:
            price = Decimal("-1")
        if not price.is_finite() or price < 0:
            violations.append(f"Item {label} price must be a non-negative amount")

        stock = _as_int(raw.get("stock"), 0)
        if stock is None or stock < 0:
            violations.append(f"Item {label} stock must be a non-negative integer")

        purchase_limit = _as_int(raw.get("purchase_limit"), 1)
        if purchase_limit is None or purchase_limit < 1:
            violations.append(f"Item {label} purchase limit must be at least 1")

        if violations:
            continue
        items.append(
            MerchandiseItem(
                sku=sku,
                name=name,
                price=Money(price),
                stock=Capacity(stock),
                purchase_limit=purchase_limit,
                size=str(raw.get("size") or "").strip(),
                color=str(raw.get("color") or "").strip(),
                variant=str(raw.get("variant") or "").strip(),
            )
        )

    if violations:
        raise ItemDefinitionError(violations)
    return tuple(items)


def quantity_violation(item: MerchandiseItem, quantity: Any, already_committed: int) -> str | None:
    """Return the reason a quantity may not be ordered, or None.

    ``already_committed`` is the participant's open plus approved quantity of
    this item for the event.
    """
    if not isinstance(quantity, int) or isinstance(quantity, bool) or not 1 <= quantity <= item.purchase_limit:
        return f"Quantity must be between 1 and {item.purchase_limit}"
    if already_committed + quantity > item.purchase_limit:
        return f"Per-participant purchase limit exceeded for this item (max {item.purchase_limit})"
    return None

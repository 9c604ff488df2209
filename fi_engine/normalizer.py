"""
Value Normalizer

Coerces loosely-typed deal records into NormalizedDeal instances. The same
logical field is stored under different names depending on which screen last
wrote the record, so every read goes through an alias list. Nothing in this
module raises for malformed data: unresolvable fields fall back to their zero
value.
"""

import logging
import math
import re
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import Any

from .dates import coerce_date
from .models import Customer, NormalizedDeal, Product, Vehicle

logger = logging.getLogger(__name__)

# Priority order approximates recency of schema
PROFIT_FIELDS = ("profit", "backEndProfit", "totalProfit", "backend")
TERM_FIELDS = ("term", "loanTerm")
LENDER_NAME_FIELDS = ("lenderName", "lender")
SOLD_PRICE_FIELDS = ("soldPrice", "price")

TRUE_STRINGS = {"true", "yes", "y", "1", "on"}

# Larger magnitudes are treated as unparseable so cent rounding stays within
# the default decimal context
MAX_MAGNITUDE = Decimal("1e15")


def to_decimal(value: Any) -> Decimal | None:
    """Parse a number or numeric string. Returns None when not finite or out of range."""
    parsed = _parse_decimal(value)
    if parsed is not None and abs(parsed) > MAX_MAGNITUDE:
        logger.debug(f"Ignoring out-of-range number: {value!r}")
        return None
    return parsed


def _parse_decimal(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(str(value)) if math.isfinite(value) else None
    if isinstance(value, str):
        text = value.strip().replace(",", "")
        if text.startswith("$"):
            text = text[1:]
        if not text:
            return None
        try:
            parsed = Decimal(text)
        except InvalidOperation:
            return None
        return parsed if parsed.is_finite() else None
    return None


def to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in TRUE_STRINGS
    if isinstance(value, (int, float, Decimal)):
        return value != 0
    return False


def to_text(value: Any) -> str:
    if value is None or isinstance(value, (Mapping, list)):
        return ""
    return str(value).strip()


def first_decimal(raw: Mapping, keys: tuple[str, ...]) -> Decimal | None:
    """First value among keys that parses to a finite number."""
    for key in keys:
        parsed = to_decimal(raw.get(key))
        if parsed is not None:
            return parsed
    return None


def coalesce_profit(raw: Mapping) -> Decimal:
    """Stored profit signal from the first parseable profit alias."""
    return first_decimal(raw, PROFIT_FIELDS) or Decimal("0")


def humanize_key(key: str) -> str:
    """'gapInsurance' -> 'Gap Insurance'."""
    if not key:
        return ""
    return key[0].upper() + re.sub(r"([A-Z])", r" \1", key[1:])


# =============================================================================
# PRODUCTS
# =============================================================================


def coerce_product(item: Any) -> Product | None:
    if isinstance(item, str):
        return Product(name=item.strip())

    if isinstance(item, Mapping):
        return Product(
            id=to_text(item.get("id") or item.get("type")),
            name=to_text(item.get("name")),
            sold_price=first_decimal(item, SOLD_PRICE_FIELDS) or Decimal("0"),
            cost=to_decimal(item.get("cost")) or Decimal("0"),
        )

    logger.debug(f"Dropping unrecognized product entry: {item!r}")
    return None


def coerce_products(value: Any) -> list[Product]:
    """
    Coerce the products field.

    - list: each element as an object or legacy string product
    - string: comma-separated legacy product names, blanks dropped
    - anything else: no products
    """
    if isinstance(value, (list, tuple)):
        items = value
    elif isinstance(value, str):
        items = [part.strip() for part in value.split(",") if part.strip()]
    else:
        return []

    products = []
    for item in items:
        product = coerce_product(item)
        if product is not None:
            products.append(product)
    return products


# =============================================================================
# CUSTOMER / VEHICLE
# =============================================================================


def coerce_customer(value: Any) -> Customer:
    if isinstance(value, str):
        return Customer(name=value.strip())
    if isinstance(value, Mapping):
        return Customer(
            name=to_text(value.get("name")),
            phone=to_text(value.get("phone")),
            email=to_text(value.get("email")),
        )
    return Customer()


def coerce_vehicle(value: Any) -> Vehicle | None:
    if isinstance(value, str):
        return Vehicle(model=value.strip()) if value.strip() else None
    if isinstance(value, Mapping):
        return Vehicle(
            year=to_text(value.get("year")),
            model=to_text(value.get("model")),
            vin=to_text(value.get("vin")),
        )
    return None


def format_vehicle(vehicle: Vehicle | None, detailed: bool = False) -> str:
    """
    Display string for a vehicle.

    Simple mode gives "{year} {model}"; detailed mode appends the VIN in
    parentheses when one is known.
    """
    if vehicle is None:
        return ""
    text = f"{vehicle.year} {vehicle.model}".strip()
    if detailed and vehicle.vin:
        text = f"{text} (VIN: {vehicle.vin})".strip()
    return text


def customer_name(deal: NormalizedDeal) -> str:
    return deal.customer.name


def lender_display_name(deal: NormalizedDeal, lender_directory: Mapping | None = None) -> str:
    """
    Lender name shown for a deal.

    The directory entry for the deal's lender id wins over the name stored on
    the record. Empty when neither is known.
    """
    if lender_directory and deal.lender_id:
        name = to_text(lender_directory.get(deal.lender_id))
        if name:
            return name
    return deal.lender_name


# =============================================================================
# DEAL
# =============================================================================


def normalize(raw: Any) -> NormalizedDeal:
    """Build a NormalizedDeal from a raw store record. Never raises."""
    if not isinstance(raw, Mapping):
        raw = {}

    return NormalizedDeal(
        id=to_text(raw.get("id")),
        user_id=to_text(raw.get("userId")),
        customer=coerce_customer(raw.get("customer")),
        vehicle=coerce_vehicle(raw.get("vehicle")),
        products=coerce_products(raw.get("products")),
        stored_profit=coalesce_profit(raw),
        buy_rate=to_decimal(raw.get("buyRate")) or Decimal("0"),
        sell_rate=to_decimal(raw.get("sellRate")) or Decimal("0"),
        loan_amount=to_decimal(raw.get("loanAmount")) or Decimal("0"),
        term=int(first_decimal(raw, TERM_FIELDS) or 0),
        use_manual_reserve=to_bool(raw.get("useManualReserve")),
        manual_reserve_amount=to_decimal(raw.get("manualReserveAmount")) or Decimal("0"),
        date_sold=coerce_date(raw.get("dateSold")),
        date=coerce_date(raw.get("date")),
        created_at=coerce_date(raw.get("createdAt")),
        sent_to_business_office=coerce_date(raw.get("sentToBusinessOffice")),
        funded_date=coerce_date(raw.get("fundedDate")),
        notes=raw.get("notes") if isinstance(raw.get("notes"), str) else "",
        lender_id=to_text(raw.get("lenderId")),
        lender_name=next((to_text(raw[k]) for k in LENDER_NAME_FIELDS if to_text(raw.get(k))), ""),
    )

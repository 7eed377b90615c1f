"""Conversion between scrape-endpoint payloads, scraped records and catalog parts."""

import time
import uuid
from typing import Any, Dict, List, Optional

from partsync.models import Part, ScrapedRecord, Specification

__all__ = [
    "generate_part_id",
    "parse_specifications",
    "parse_scraped_record",
    "normalize_record",
]


def generate_part_id() -> str:
    """Return a fresh, globally unique part id."""
    return f"scraped_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).replace("$", "").replace(",", "").strip())
    except ValueError:
        return None


def parse_specifications(raw: Any) -> List[Specification]:
    """Coerce a specifications payload into a list of Specification.

    Accepts ``{"attribute", "values": [...]}`` entries, a scalar ``values``,
    or a single ``value`` key. Entries without an attribute are dropped.
    """
    if not isinstance(raw, list):
        return []

    specs: List[Specification] = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        attribute = _text(entry.get("attribute"))
        if not attribute:
            continue
        values = entry.get("values", entry.get("value"))
        if values is None:
            values = []
        elif not isinstance(values, list):
            values = [values]
        specs.append(Specification(attribute=attribute, values=[_text(v) for v in values]))
    return specs


def parse_scraped_record(payload: Dict[str, Any]) -> ScrapedRecord:
    """Build a ScrapedRecord from one JSON object served by the scrape endpoint.

    Raises:
        ValueError: If the payload is not an object or has no usable SKU
    """
    if not isinstance(payload, dict):
        raise ValueError(f"expected an object, got {type(payload).__name__}")

    sku = _text(payload.get("sku"))
    if not sku:
        raise ValueError(f"record without SKU: {payload.get('name') or payload!r}")

    availability = payload.get("availability")

    return ScrapedRecord(
        sku=sku,
        name=_text(payload.get("name")),
        category=_text(payload.get("category")),
        description=_text(payload.get("description")),
        specifications=parse_specifications(payload.get("specifications")),
        image_url=_text(payload.get("imageUrl") or payload.get("image_url")),
        price=_to_float(payload.get("price")),
        availability=availability if isinstance(availability, bool) else None,
        product_url=_text(payload.get("productUrl")) or None,
    )


def normalize_record(record: ScrapedRecord, existing_id: Optional[str] = None) -> Part:
    """Convert a scraped record into a catalog Part.

    Reuses ``existing_id`` when given, otherwise assigns a new id. Every other
    field is copied from the record as-is.
    """
    return Part(
        id=existing_id or generate_part_id(),
        sku=record.sku,
        name=record.name,
        category=record.category,
        description=record.description,
        specifications=[Specification(s.attribute, list(s.values)) for s in record.specifications],
        image_url=record.image_url,
    )

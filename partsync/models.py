"""Data models for the parts catalog and sync results."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from partsync.config import NOTIFICATION_ERROR_PREVIEW, NOTIFICATION_TYPE

__all__ = [
    "Specification",
    "Part",
    "ScrapedRecord",
    "UpdateResult",
    "MergeResult",
    "Notification",
    "ScheduleInfo",
    "UpdateStatus",
    "utc_now",
    "to_iso",
    "parse_iso",
    "summarize_errors",
]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(ts: datetime) -> str:
    """Format a timestamp as ISO-8601 in UTC with millisecond precision ('...Z')."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def summarize_errors(errors: List[str], limit: int = NOTIFICATION_ERROR_PREVIEW) -> List[str]:
    """First ``limit`` errors, plus a '... and N more' line for the rest."""
    lines = list(errors[:limit])
    remaining = len(errors) - limit
    if remaining > 0:
        lines.append(f"... and {remaining} more")
    return lines


def parse_iso(value: str) -> datetime:
    """Parse an ISO-8601 string; naive values are taken as UTC.

    Raises:
        ValueError: If the string is not a valid timestamp
    """
    ts = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


@dataclass
class Specification:
    """One attribute of a part with its (possibly multiple) values."""

    attribute: str
    values: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"attribute": self.attribute, "values": list(self.values)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Specification":
        return cls(attribute=str(data.get("attribute", "")), values=[str(v) for v in data.get("values", [])])


@dataclass
class Part:
    """Canonical catalog entry.

    ``id`` is assigned once when the part is first added and survives every
    later update; ``sku`` is the natural key scraped records are matched on.
    """

    id: str
    sku: str
    name: str
    category: str
    description: str
    specifications: List[Specification] = field(default_factory=list)
    image_url: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "sku": self.sku,
            "name": self.name,
            "category": self.category,
            "description": self.description,
            "specifications": [s.to_dict() for s in self.specifications],
            "imageUrl": self.image_url,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Part":
        return cls(
            id=str(data["id"]),
            sku=str(data["sku"]),
            name=data.get("name") or "",
            category=data.get("category") or "",
            description=data.get("description") or "",
            specifications=[Specification.from_dict(s) for s in data.get("specifications") or []],
            image_url=data.get("imageUrl") or "",
        )


@dataclass
class ScrapedRecord:
    """One product discovered for a category, as delivered by the scrape endpoint.

    ``price``, ``availability`` and ``product_url`` are carried along but not
    persisted into :class:`Part`.
    """

    sku: str
    name: str = ""
    category: str = ""
    description: str = ""
    specifications: List[Specification] = field(default_factory=list)
    image_url: str = ""
    price: Optional[float] = None
    availability: Optional[bool] = None
    product_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "sku": self.sku,
            "name": self.name,
            "category": self.category,
            "description": self.description,
            "specifications": [s.to_dict() for s in self.specifications],
            "imageUrl": self.image_url,
        }
        if self.price is not None:
            data["price"] = self.price
        if self.availability is not None:
            data["availability"] = self.availability
        if self.product_url:
            data["productUrl"] = self.product_url
        return data


@dataclass
class UpdateResult:
    """Outcome of one orchestrator run. ``errors`` holds one entry per failed category."""

    added: int = 0
    updated: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def has_changes(self) -> bool:
        return self.added > 0 or self.updated > 0

    def to_dict(self) -> Dict[str, Any]:
        return {"added": self.added, "updated": self.updated, "errors": list(self.errors)}


@dataclass
class MergeResult:
    catalog: List[Part]
    added: int = 0
    updated: int = 0


@dataclass
class Notification:
    """A recorded sync outcome for display in a status panel."""

    timestamp: str
    message: str
    type: str = NOTIFICATION_TYPE
    has_errors: bool = False
    errors: List[str] = field(default_factory=list)

    @classmethod
    def from_result(cls, result: UpdateResult, timestamp: datetime) -> "Notification":
        return cls(
            timestamp=to_iso(timestamp),
            message=f"Parts database updated: {result.added} new, {result.updated} updated",
            has_errors=result.has_errors,
            errors=list(result.errors),
        )

    def error_summary(self, limit: int = NOTIFICATION_ERROR_PREVIEW) -> List[str]:
        return summarize_errors(self.errors, limit)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "type": self.type,
            "message": self.message,
            "hasErrors": self.has_errors,
            "errors": list(self.errors),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Notification":
        return cls(
            timestamp=str(data.get("timestamp", "")),
            type=str(data.get("type", NOTIFICATION_TYPE)),
            message=str(data.get("message", "")),
            has_errors=bool(data.get("hasErrors", False)),
            errors=[str(e) for e in data.get("errors") or []],
        )


@dataclass
class ScheduleInfo:
    is_running: bool
    interval: int
    next_update: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"isRunning": self.is_running, "interval": self.interval, "nextUpdate": self.next_update}


@dataclass
class UpdateStatus:
    last_update: Optional[str]
    total_parts: int
    next_update_due: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lastUpdate": self.last_update,
            "totalParts": self.total_parts,
            "nextUpdateDue": self.next_update_due,
        }

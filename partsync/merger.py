"""Reconcile a scraped batch against the catalog by SKU."""

from typing import Iterable, List, Set

from partsync.models import MergeResult, Part, ScrapedRecord
from partsync.normalizer import normalize_record

__all__ = ["merge_catalog"]


def merge_catalog(existing: List[Part], batch: Iterable[ScrapedRecord]) -> MergeResult:
    """Merge scraped records into a copy of ``existing``.

    A record whose SKU is already in the catalog replaces the first part with
    that SKU in place and keeps its id; any other record is appended with a
    fresh id. Untouched parts keep their order. ``existing`` is not modified.
    """
    merged = list(existing)
    known_skus: Set[str] = {p.sku for p in merged}
    added = 0
    updated = 0

    for record in batch:
        if record.sku in known_skus:
            index = next(i for i, p in enumerate(merged) if p.sku == record.sku)
            merged[index] = normalize_record(record, merged[index].id)
            updated += 1
        else:
            merged.append(normalize_record(record))
            known_skus.add(record.sku)
            added += 1

    return MergeResult(catalog=merged, added=added, updated=updated)

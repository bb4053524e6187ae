"""Mapping between backend JSON records and core models."""

import logging
from collections.abc import Iterable
from typing import Any

from pydantic import ValidationError

from tripcore.app.models.availability import AvailabilityDay
from tripcore.app.models.itinerary import ExperienceSnapshot, ItineraryItem

logger = logging.getLogger(__name__)

# Backend item field -> snapshot field
_SNAPSHOT_FIELDS = {
    "experience_name": "name",
    "experience_description": "description",
    "destination_name": "destination_name",
    "destination_city": "destination_city",
    "images": "images",
    "primary_image": "primary_image",
    "price": "price",
    "price_estimate": "price_estimate",
    "unit": "unit",
    "destination_latitude": "latitude",
    "destination_longitude": "longitude",
}


def item_from_record(record: dict[str, Any]) -> ItineraryItem:
    """Build an item from a flat backend record.

    Raises:
        ValidationError: If the record violates item invariants
    """
    snapshot_data = {
        target: record[source]
        for source, target in _SNAPSHOT_FIELDS.items()
        if record.get(source) is not None
    }
    return ItineraryItem(
        experience_id=record.get("experience_id"),
        day_number=record.get("day_number"),
        start_time=record.get("start_time"),
        end_time=record.get("end_time"),
        custom_note=record.get("custom_note"),
        slot_id=record.get("slot_id"),
        snapshot=ExperienceSnapshot(**snapshot_data),
    )


def items_from_records(records: Iterable[Any]) -> list[ItineraryItem]:
    """Build items, skipping records that are not valid items."""
    items = []
    for record in records:
        if not isinstance(record, dict):
            continue
        try:
            items.append(item_from_record(record))
        except ValidationError as e:
            logger.warning(
                "Skipping invalid itinerary item record",
                extra={
                    "structured": {
                        "experience_id": record.get("experience_id"),
                        "errors": [err["msg"] for err in e.errors()],
                    }
                },
            )
    return items


def availability_from_body(body: Any) -> list[AvailabilityDay]:
    """Parse ``{availability: [...]}``; anything malformed yields no days."""
    if not isinstance(body, dict):
        return []
    entries = body.get("availability")
    if not isinstance(entries, list):
        return []

    days = []
    for entry in entries:
        try:
            days.append(AvailabilityDay.model_validate(entry))
        except ValidationError:
            logger.warning(
                "Skipping malformed availability entry",
                extra={"structured": {"entry": str(entry)[:200]}},
            )
    return days

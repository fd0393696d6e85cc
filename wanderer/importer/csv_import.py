from __future__ import annotations

import csv
import io
import json
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

import pandas as pd

from ..catalog.store import CatalogStore, StorageError
from .config import DEFAULT_IMPORT_CONFIG, ImportConfig

logger = logging.getLogger(__name__)

# Spreadsheet exports tend to curl the quotes inside JSON arrays.
_SMART_QUOTES = str.maketrans({"“": '"', "”": '"'})


@dataclass
class ImportResult:
    table: str
    total: int = 0
    success_count: int = 0
    error_count: int = 0
    failed_batches: list[int] = field(default_factory=list)


def _coerce_value(raw: Any) -> Any:
    if raw is None or (isinstance(raw, float) and math.isnan(raw)):
        return None
    value = str(raw).strip()
    if value.startswith("[") and value.endswith("]"):
        try:
            return json.loads(value.translate(_SMART_QUOTES))
        except json.JSONDecodeError:
            logger.warning("Failed to parse array value %r, keeping it as text", value)
    if value in ("", '""'):
        return None
    return value


def parse_csv(text: str, delimiter: str = DEFAULT_IMPORT_CONFIG.delimiter) -> list[dict[str, Any]]:
    """
    Parse a delimited export with a header row into field-keyed records.

    Bracketed values become JSON arrays when they parse, empty values become
    ``None``, missing trailing values are ``None`` and surplus values are
    dropped. Fewer than two non-blank lines yields no records.
    """
    lines = [line for line in text.splitlines() if line.strip()]
    if len(lines) < 2:
        return []

    width = len(lines[0].split(delimiter))
    df = pd.read_csv(
        io.StringIO("\n".join(lines)),
        sep=delimiter,
        dtype=str,
        keep_default_na=False,
        quoting=csv.QUOTE_NONE,
        engine="python",
        index_col=False,
        on_bad_lines=lambda bad: bad[:width],
    )
    df.columns = [str(c).strip() for c in df.columns]
    # A trailing delimiter in the header leaves a nameless column.
    df = df[[c for c in df.columns if c and not c.startswith("Unnamed: ")]]
    df = df.astype(object).where(df.notna(), None)

    return [
        {column: _coerce_value(value) for column, value in row.items()}
        for row in df.to_dict(orient="records")
    ]


# ---------------------------------------------------------------------------
# Per-table field mapping
# ---------------------------------------------------------------------------


def _parse_float(value: Any, default: float | None) -> float | None:
    if value is None:
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


def _parse_bool(value: Any) -> bool:
    return value is True or str(value).strip().lower() == "true"


def _lower_or_none(value: Any) -> str | None:
    return value.strip().lower() if isinstance(value, str) and value.strip() else None


def _map_tourist_spot(item: dict[str, Any]) -> dict[str, Any]:
    return {
        "name": item.get("name"),
        "description": item.get("description"),
        "contact_number": item.get("contact_number"),
        "location": item.get("location"),
        "municipality": item.get("municipality"),
        "category": item.get("category"),
        "subcategories": item.get("subcategories"),
        "image_url": item.get("image_url"),
        "latitude": _parse_float(item.get("latitude"), None),
        "longitude": _parse_float(item.get("longitude"), None),
        "rating": _parse_float(item.get("rating"), 0.0),
        "is_hidden_gem": _parse_bool(item.get("is_hidden_gem")),
        "budget_level": _lower_or_none(item.get("budget_level")),
        "accessibility_friendly": _parse_bool(item.get("accessibility_friendly")),
        "scenery_type": item.get("scenery_type"),
    }


def _map_accommodation(item: dict[str, Any]) -> dict[str, Any]:
    return {
        "name": item.get("name"),
        "description": item.get("description"),
        "location": item.get("location"),
        "municipality": item.get("municipality"),
        "category": item.get("category"),
        "image_url": item.get("image_url"),
        "contact_number": item.get("contact_number"),
        "email": item.get("email"),
        "price_range": item.get("price_range"),
        "amenities": item.get("amenities"),
        "rating": _parse_float(item.get("rating"), 0.0),
        "latitude": _parse_float(item.get("latitude"), None),
        "longitude": _parse_float(item.get("longitude"), None),
    }


def _map_restaurant(item: dict[str, Any]) -> dict[str, Any]:
    return {
        "name": item.get("name"),
        "food_type": item.get("food_type"),
        "location": item.get("location"),
        "municipality": item.get("municipality"),
        "description": item.get("description"),
        "image_url": item.get("image_url"),
    }


def _map_event(item: dict[str, Any]) -> dict[str, Any]:
    return {
        "name": item.get("name"),
        "event_type": item.get("event_type"),
        "location": item.get("location"),
        "municipality": item.get("municipality"),
        "description": item.get("description"),
        "event_date": item.get("event_date"),
        "image_url": item.get("image_url"),
        "district": item.get("district"),
    }


def _map_category(item: dict[str, Any]) -> dict[str, Any]:
    return {"name": item.get("name"), "description": item.get("description")}


def _map_subcategory(item: dict[str, Any]) -> dict[str, Any]:
    return {"name": item.get("name"), "category_id": item.get("category_id")}


IMPORT_TYPES: dict[str, Callable[[dict[str, Any]], dict[str, Any]]] = {
    "tourist_spots": _map_tourist_spot,
    "accommodations": _map_accommodation,
    "restaurants": _map_restaurant,
    "events": _map_event,
}

# Categories and subcategories are only loaded from the packaged seed, never uploaded.
_SEED_TYPES = {
    **IMPORT_TYPES,
    "categories": _map_category,
    "subcategories": _map_subcategory,
}


def run_import(
    store: CatalogStore,
    import_type: str,
    text: str,
    config: ImportConfig = DEFAULT_IMPORT_CONFIG,
    *,
    allow_seed_types: bool = False,
) -> ImportResult:
    """
    Import a CSV blob into *import_type*'s table.

    Rows go in batches of ``config.batch_size``. A batch the store rejects is
    logged and counted as failed; remaining batches still run.
    """
    mappers = _SEED_TYPES if allow_seed_types else IMPORT_TYPES
    mapper = mappers.get(import_type)
    if mapper is None:
        raise ValueError(f"Invalid data type selected: {import_type}")

    rows = [mapper(record) for record in parse_csv(text, config.delimiter)]
    result = ImportResult(table=import_type, total=len(rows))

    for start in range(0, len(rows), config.batch_size):
        batch = rows[start:start + config.batch_size]
        batch_number = start // config.batch_size + 1
        try:
            store.insert(import_type, batch)
        except StorageError:
            logger.warning(
                "Batch %d of %s import failed (%d rows)",
                batch_number, import_type, len(batch), exc_info=True,
            )
            result.error_count += len(batch)
            result.failed_batches.append(batch_number)
        else:
            result.success_count += len(batch)

    logger.info(
        "Imported %d/%d %s records (%d failed)",
        result.success_count, result.total, import_type, result.error_count,
    )
    return result


def import_file(
    store: CatalogStore,
    import_type: str,
    path: Path,
    config: ImportConfig = DEFAULT_IMPORT_CONFIG,
) -> ImportResult:
    text = path.read_text(encoding="utf-8")
    return run_import(store, import_type, text, config, allow_seed_types=True)

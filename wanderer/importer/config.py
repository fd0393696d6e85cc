from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class ImportConfig:
    """
    Configuration for semicolon-CSV catalog imports.
    """

    delimiter: str = ";"
    batch_size: int = 50
    seed_dir: Path = Path(__file__).resolve().parent.parent / "data" / "seed"
    seed_files: tuple[tuple[str, str], ...] = (
        ("categories", "categories.csv"),
        ("tourist_spots", "tourist_spots.csv"),
        ("accommodations", "accommodations.csv"),
        ("restaurants", "restaurants.csv"),
        ("events", "events.csv"),
    )


DEFAULT_IMPORT_CONFIG = ImportConfig()

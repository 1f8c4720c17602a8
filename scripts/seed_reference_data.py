"""
Seed categories and brands with the initial catalog data.

Safe to re-run: names that already exist (case-insensitive, active) are skipped.
"""

import sys
from pathlib import Path

# Add backend to path so we can import modules
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

from models.actor import Actor, Role
from models.reference import ReferenceCreate
from services.reference_service import (
    ReferenceService,
    get_category_service,
    get_brand_service,
)
import structlog

logger = structlog.get_logger(__name__)

SEED_ACTOR = Actor(id="seed-script", role=Role.ADMIN)

CATEGORIES = [
    "Submersible borehole",
    "Submersible",
    "Centrifugal",
    "Multistage",
    "Pressure pump",
    "Solar pumps",
    "Digital control panels",
]

BRANDS = [
    "Pentax",
    "Samking",
    "Difule",
    "Deep Tec",
    "Coverco",
    "Franklin",
]


def seed(service: ReferenceService, names: list[str], describe) -> int:
    """Create missing rows. Returns number created."""
    created = 0
    for name in names:
        if service.find_active_by_name(name):
            print(f"  - {name} (exists)")
            continue
        service.create(ReferenceCreate(name=name, description=describe(name)), SEED_ACTOR)
        print(f"  ✓ {name}")
        created += 1

    logger.info("references_seeded", table=service.table, created=created)
    return created


def seed_reference_data():
    """Seed categories then brands."""
    try:
        print("Categories:")
        categories = seed(
            get_category_service(),
            CATEGORIES,
            lambda name: f"{name} category for Deep Tec products"
        )

        print("\nBrands:")
        brands = seed(
            get_brand_service(),
            BRANDS,
            lambda name: f"{name} brand products"
        )

        print(f"\n✓ Created {categories} categories and {brands} brands")

    except Exception as e:
        logger.error("seed_reference_data_failed", error=str(e))
        print(f"✗ Failed to seed reference data: {e}")
        raise


if __name__ == "__main__":
    print("Seeding categories and brands...")
    seed_reference_data()
    print("\nDone!")

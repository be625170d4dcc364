"""
Tests for listing title derivation.
"""

import pytest
from decimal import Decimal

from listings_api.models.property import PropertyType, derive_title


class TestDeriveTitle:

    def test_villa_with_district(self):
        title = derive_title(PropertyType.VILLA, 5, Decimal("250"), "Alger", "Hydra")
        assert title == "Villa 5 pièces - 250m² à Alger - Hydra"

    def test_idempotent(self):
        args = (PropertyType.APPARTEMENT, 3, Decimal("95.5"), "Oran", "Bir El Djir")
        assert derive_title(*args) == derive_title(*args)

    def test_rooms_ignored_for_land(self):
        title = derive_title(PropertyType.TERRAIN, 4, Decimal("600"), "Blida")
        assert title == "Terrain - 600m² à Blida"

    def test_commercial_label_without_rooms(self):
        title = derive_title(PropertyType.LOCAL_COMMERCIAL, None, Decimal("80"), "Constantine", "Centre")
        assert title == "Local Commercial - 80m² à Constantine - Centre"

    def test_office_keeps_rooms(self):
        assert derive_title(PropertyType.BUREAU, 2, Decimal("45"), "Alger") == "Bureau 2 pièces - 45m² à Alger"

    @pytest.mark.parametrize(
        "surface, rendered",
        [
            (Decimal("1500"), "1,500m²"),
            (Decimal("120.5"), "121m²"),
            (Decimal("120.49"), "120m²"),
            (Decimal("2.5"), "3m²"),
        ]
    )
    def test_surface_rounding_and_grouping(self, surface, rendered):
        title = derive_title(PropertyType.VILLA, None, surface, "Tipaza")
        assert title == f"Villa - {rendered} à Tipaza"

    def test_accepts_plain_string_type(self):
        assert derive_title("appartement", 1, Decimal("30"), "Alger").startswith("Appartement 1 pièces")

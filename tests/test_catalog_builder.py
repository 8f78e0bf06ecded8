"""
Unit tests for canonical catalog construction and reporting.
"""

import pytest
import sys
from pathlib import Path

# Add project root to path
sys.path.append(str(Path(__file__).parent.parent))

from labmatch.config import get_default_config
from labmatch.match.assigner import GreedyAssigner
from labmatch.merge.catalog_builder import (
    CanonicalCatalogBuilder,
    build_offering,
    name_sort_key,
    round_half_up,
)
from labmatch.models import LabTestRecord, SpecimenMeta
from labmatch.reporting.match_report import build_match_report
from labmatch.reporting.summary import build_metadata, confidence_distribution, format_console_summary


def make_record(code, raw_name, lab_id="CDL", **kwargs):
    return LabTestRecord(code=code, raw_name=raw_name, lab_id=lab_id, **kwargs)


class TestHelpers:
    """Test cases for rounding, collation and offering snapshots."""

    def test_round_half_up(self):
        """Test halves round up."""
        assert round_half_up(0.125) == 0.13
        assert round_half_up(0.774) == 0.77
        assert round_half_up(1.0) == 1.0

    def test_name_sort_key(self):
        """Test canonical name collation."""
        names = ["FERTILITE 1", "albumine", "FER 1", "CALCIUM"]
        assert sorted(names, key=name_sort_key) == ["albumine", "CALCIUM", "FER 1", "FERTILITE 1"]

    def test_build_offering(self):
        """Test offering snapshots carry only present optional fields."""
        record = make_record(
            "TSH", "TSH", price=25, components=("TSH",),
            specimen_meta=SpecimenMeta(tube="SST", turnaround_time="24h"),
        )
        offering = build_offering(record)

        assert offering == {
            "lab": "CDL",
            "code": "TSH",
            "raw_name": "TSH",
            "type": "individual",
            "category": None,
            "price": 25,
            "tube": "SST",
            "turnaroundTime": "24h",
            "components": ["TSH"],
        }

    def test_build_offering_is_a_copy(self):
        """Test offerings do not share state with the record."""
        record = make_record("P1", "Bilan", components=("TSH", "T4"))
        offering = build_offering(record)
        offering["components"].append("T3")

        assert record.components == ("TSH", "T4")


class TestCanonicalCatalogBuilder:
    """Test cases for catalog construction."""

    def setup_method(self):
        """Setup test fixtures."""
        self.config = get_default_config()
        self.assigner = GreedyAssigner(self.config)
        self.builder = CanonicalCatalogBuilder(self.config)

    def build(self, left, right):
        result = self.assigner.match(left, right)
        catalog = self.builder.build(left, right, result.assignments,
                                     result.unmatched_left, result.unmatched_right)
        return result, catalog

    def test_single_catalog_record(self):
        """Test an unmatched record becomes a single-offering concept."""
        left = [make_record("X1", "Glycémie à jeun")]

        _, catalog = self.build(left, [])

        assert len(catalog) == 1
        concept = catalog[0]
        assert concept["canonical_id"] == "CAN-0001"
        assert concept["canonical_name"] == "GLYCEMIE A JEUN"
        assert concept["match_confidence"] is None
        assert concept["match_reasons"] is None
        assert list(concept["offerings"]) == ["CDL"]
        assert concept["specimen_type"] == "DEFAULT"

    def test_matched_concept(self):
        """Test a matched pair becomes one concept with both offerings."""
        left = [make_record("TSH", "TSH", price=25)]
        right = [make_record("TSH", "Dosage TSH", lab_id="Dynacare", price=28)]

        _, catalog = self.build(left, right)

        assert len(catalog) == 1
        concept = catalog[0]
        assert concept["canonical_name"] == "TSH"
        assert concept["medical_category"] == "Thyroid"
        assert set(concept["offerings"]) == {"CDL", "Dynacare"}
        assert concept["offerings"]["Dynacare"]["price"] == 28
        assert concept["match_confidence"] == round(concept["match_confidence"], 2)
        assert "exact_code" in concept["match_reasons"]

    def test_specimen_variants_stay_separate(self):
        """Test serum and 24h urine variants become distinct concepts."""
        left = [make_record("CA", "Calcium"), make_record("CAU", "Calcium, urine 24 heures")]
        right = [make_record("D200", "Calcium", lab_id="Dynacare")]

        _, catalog = self.build(left, right)

        assert len(catalog) == 2
        assert catalog[0]["canonical_name"] == "CALCIUM"
        assert len(catalog[0]["offerings"]) == 2
        assert catalog[1]["canonical_name"] == "CALCIUM URINE 24 HEURES [Urine 24h]"
        assert catalog[1]["specimen_type"] == "URINE_24H"

        variants = self.builder.find_specimen_variants(catalog)
        assert variants == [{
            "base_concept": "CALCIUM",
            "variants": [
                {"canonical_id": "CAN-0001", "canonical_name": "CALCIUM", "specimen_type": "DEFAULT"},
                {"canonical_id": "CAN-0002", "canonical_name": "CALCIUM URINE 24 HEURES [Urine 24h]",
                 "specimen_type": "URINE_24H"},
            ],
        }]

    def test_sort_and_ids(self):
        """Test matched concepts first by confidence, then single-lab by name."""
        left = [make_record("ZN", "Zinc"), make_record("TSH", "TSH"), make_record("FER", "Ferritine")]
        right = [
            make_record("D1", "Ferritine", lab_id="Dynacare"),
            make_record("TSH", "TSH", lab_id="Dynacare"),
            make_record("D3", "Albumine", lab_id="Dynacare"),
        ]

        _, catalog = self.build(left, right)

        assert [c["canonical_name"] for c in catalog] == ["TSH", "FERRITINE", "ALBUMINE", "ZINC"]
        assert [c["canonical_id"] for c in catalog] == ["CAN-0001", "CAN-0002", "CAN-0003", "CAN-0004"]
        confidences = [c["match_confidence"] for c in catalog[:2]]
        assert confidences == sorted(confidences, reverse=True)

    def test_every_record_in_one_concept(self):
        """Test each input record appears in exactly one offering."""
        left = [make_record(f"L{i}", name) for i, name in enumerate(["TSH", "Ferritine", "Calcium"])]
        right = [make_record(f"R{i}", name, lab_id="Dynacare")
                 for i, name in enumerate(["Calcium", "Zinc", "TSH", "Albumine"])]

        _, catalog = self.build(left, right)
        offered = [(o["lab"], o["code"]) for c in catalog for o in c["offerings"].values()]

        assert len(offered) == len(set(offered)) == len(left) + len(right)

    def test_format_conflicts(self):
        """Test conflict rendering."""
        left = [make_record("A", "TSH"), make_record("B", "TSH")]
        right = [make_record("C", "TSH", lab_id="Dynacare")]

        result = self.assigner.match(left, right)
        conflicts = self.builder.format_conflicts(left, right, result.conflicts)

        assert conflicts == [{
            "dynacare": {"code": "C", "raw_name": "TSH"},
            "cdl_candidates": [
                {"code": "A", "raw_name": "TSH", "score": 0.45, "reasons": ["exact_name"]},
                {"code": "B", "raw_name": "TSH", "score": 0.45, "reasons": ["exact_name"]},
            ],
        }]


class TestReporting:
    """Test cases for metadata and match report."""

    def setup_method(self):
        """Setup test fixtures."""
        self.config = get_default_config()
        self.assigner = GreedyAssigner(self.config)
        self.builder = CanonicalCatalogBuilder(self.config)
        self.left = [make_record("TSH", "TSH"), make_record("ZN", "Zinc")]
        self.right = [make_record("TSH", "Dosage TSH", lab_id="Dynacare"),
                      make_record("D9", "Albumine", lab_id="Dynacare")]
        self.result = self.assigner.match(self.left, self.right)
        self.catalog = self.builder.build(self.left, self.right, self.result.assignments,
                                          self.result.unmatched_left, self.result.unmatched_right)

    def test_confidence_distribution(self):
        """Test confidence binning."""
        bins = confidence_distribution([0.95, 0.9, 0.7, 0.69, 0.35])
        assert bins == {"0.90-1.00": 2, "0.70-0.89": 1, "0.50-0.69": 1, "0.35-0.49": 1}

    def test_build_metadata(self):
        """Test metadata counts and keys."""
        source_counts = {"main": 3, "specimen_entries": 1, "enriched": 1, "deduplicated": 2, "right": 2}
        metadata = build_metadata(self.config, self.catalog, [], [], source_counts,
                                  generated_at="2024-01-01T00:00:00.000Z")

        assert metadata["generated_at"] == "2024-01-01T00:00:00.000Z"
        assert "CDL" in metadata["description"] and "Dynacare" in metadata["description"]
        assert metadata["source_counts"] == {
            "CDL_main": 3,
            "CDL_specimen_manual_entries": 1,
            "CDL_enriched_with_specimen_data": 1,
            "CDL_deduplicated": 2,
            "Dynacare": 2,
        }
        assert metadata["matching_summary"] == {
            "total_canonical_concepts": 3,
            "matched_both_labs": 1,
            "cdl_only": 1,
            "dynacare_only": 1,
            "conflicts_detected": 0,
            "match_threshold": 0.35,
        }
        assert sum(metadata["confidence_distribution"].values()) == 1
        assert metadata["specimen_variant_separation"] == {"count": 0, "examples": []}
        assert sum(metadata["category_distribution"].values()) == 3

    def test_console_summary(self):
        """Test console summary rendering."""
        source_counts = {"main": 2, "specimen_entries": 0, "enriched": 0, "deduplicated": 2, "right": 2}
        document = {
            "metadata": build_metadata(self.config, self.catalog, [], [], source_counts),
            "canonical_catalog": self.catalog,
            "conflicts": [],
        }
        text = format_console_summary(document, "CDL", "Dynacare")

        assert "Canonical Concepts: 3" in text
        assert "Matched (both labs): 1" in text
        assert "Conflicts: 0" in text

    def test_match_report(self):
        """Test the pair-level match report."""
        report = build_match_report(self.left, self.right, self.result, [], "CDL", "Dynacare", 0.35,
                                    generated_at="2024-01-01T00:00:00.000Z")

        assert report["metadata"]["total_matched"] == 1
        assert report["metadata"]["total_unmatched_lab_a"] == 1
        assert report["metadata"]["total_unmatched_lab_b"] == 1
        assert list(report["metadata"]["confidence_distribution"]) == [
            "0.90-1.00", "0.80-0.89", "0.70-0.79", "0.60-0.69", "0.50-0.59", "0.35-0.49"
        ]
        pair = report["matched_pairs"][0]
        assert pair["lab_a"]["code"] == "TSH"
        assert pair["lab_b"]["lab"] == "Dynacare"
        assert report["unmatched_in_lab_a"] == [{"code": "ZN", "raw_name": "Zinc", "type": None, "price": None}]
        assert report["potential_canonical_groups"]["Thyroid"][0]["canonical_name"] == "TSH"


if __name__ == "__main__":
    pytest.main([__file__])

"""
Unit tests for greedy one-to-one assignment.
"""

import itertools
import time

import pytest
import sys
from pathlib import Path

# Add project root to path
sys.path.append(str(Path(__file__).parent.parent))

from labmatch.config import get_default_config, merge_configs
from labmatch.exceptions import MatchingBudgetExceeded
from labmatch.match.assigner import GreedyAssigner
from labmatch.models import LabTestRecord


def make_records(names, lab_id, prefix):
    return [
        LabTestRecord(code=f"{prefix}{i}", raw_name=name, lab_id=lab_id)
        for i, name in enumerate(names)
    ]


class TestGreedyAssigner:
    """Test cases for the greedy assigner."""

    def setup_method(self):
        """Setup test fixtures."""
        self.config = get_default_config()
        self.assigner = GreedyAssigner(self.config)

    def test_basic_assignment(self):
        """Test obvious pairs are assigned to each other."""
        left = make_records(["TSH", "Fer sérique", "Glycémie à jeun"], "CDL", "L")
        right = make_records(["Fer sérique", "TSH"], "Dynacare", "R")

        result = self.assigner.match(left, right)
        pairs = {(a.left_idx, a.right_idx) for a in result.assignments}

        assert pairs == {(0, 1), (1, 0)}
        assert result.unmatched_left == [2]
        assert result.unmatched_right == []

    def test_injective(self):
        """Test no record is assigned twice."""
        left = make_records(["TSH", "TSH", "Ferritine"], "CDL", "L")
        right = make_records(["TSH", "Dosage TSH", "Ferritine"], "Dynacare", "R")

        result = self.assigner.match(left, right)
        left_ids = [a.left_idx for a in result.assignments]
        right_ids = [a.right_idx for a in result.assignments]

        assert len(left_ids) == len(set(left_ids))
        assert len(right_ids) == len(set(right_ids))

    def test_complete(self):
        """Test every record is either assigned or unmatched."""
        left = make_records(["TSH", "Ferritine", "Calcium", "Zinc"], "CDL", "L")
        right = make_records(["Ferritine", "Calcium, urine 24 heures", "TSH"], "Dynacare", "R")

        result = self.assigner.match(left, right)

        assert len(result.assignments) + len(result.unmatched_left) == len(left)
        assert len(result.assignments) + len(result.unmatched_right) == len(right)

    def test_ties_prefer_lower_left_index(self):
        """Test equal scores resolve to the earlier left record."""
        left = make_records(["TSH", "TSH"], "CDL", "L")
        right = make_records(["TSH"], "Dynacare", "R")

        result = self.assigner.match(left, right)

        assert [(a.left_idx, a.right_idx) for a in result.assignments] == [(0, 0)]
        assert result.unmatched_left == [1]

    def test_conflict_detection(self):
        """Test close top candidates are reported as a conflict."""
        left = make_records(["TSH", "TSH", "TSH"], "CDL", "L")
        right = make_records(["TSH"], "Dynacare", "R")

        result = self.assigner.match(left, right)

        assert len(result.conflicts) == 1
        assert result.conflicts[0].right_idx == 0
        assert len(result.conflicts[0].candidates) == 3
        # Still assigned
        assert len(result.assignments) == 1

    def test_conflict_top_n(self):
        """Test conflicts keep only the top candidates."""
        left = make_records(["TSH"] * 5, "CDL", "L")
        right = make_records(["TSH"], "Dynacare", "R")

        result = self.assigner.match(left, right)

        assert len(result.conflicts[0].candidates) == 3

    def test_no_conflict_for_clear_winner(self):
        """Test a single candidate never conflicts."""
        left = make_records(["Ferritine", "TSH"], "CDL", "L")
        right = make_records(["Ferritine"], "Dynacare", "R")

        result = self.assigner.match(left, right)
        assert result.conflicts == []

    def test_candidates_sorted(self):
        """Test per-right candidates are sorted by descending score."""
        left = make_records(["Dosage TSH", "TSH"], "CDL", "L")
        right = make_records(["TSH"], "Dynacare", "R")

        result = self.assigner.match(left, right)
        scores = [c.score for c in result.candidates_by_right[0]]

        assert scores == sorted(scores, reverse=True)
        assert result.candidates_by_right[0][0].left_idx == 1
        assert result.assignments[0].left_idx == 1

    def test_threshold(self):
        """Test pairs below the threshold are never assigned."""
        left = make_records(["Ferritine"], "CDL", "L")
        right = make_records(["Ferritine sérum"], "Dynacare", "R")

        assert self.assigner.match(left, right, threshold=0.35).assignments == []
        assert len(self.assigner.match(left, right, threshold=0.2).assignments) == 1

    def test_empty_inputs(self):
        """Test empty catalogs."""
        left = make_records(["TSH"], "CDL", "L")

        result = self.assigner.match(left, [])
        assert result.assignments == []
        assert result.unmatched_left == [0]

        result = self.assigner.match([], [])
        assert result.assignments == []
        assert result.unmatched_left == []
        assert result.unmatched_right == []

    def test_workers_do_not_change_result(self):
        """Test threaded scoring gives the same result as inline scoring."""
        names_left = ["TSH", "Ferritine", "Calcium", "Vitamine B12", "Fer #1", "Cholestérol total"]
        names_right = ["Dosage TSH", "B12", "Calcium", "Fertilité #1", "Cholestérol", "Ferritine"]
        left = make_records(names_left, "CDL", "L")
        right = make_records(names_right, "Dynacare", "R")

        threaded = GreedyAssigner(merge_configs(self.config, {"matching": {"workers": 4}}))

        assert threaded.match(left, right).model_dump() == self.assigner.match(left, right).model_dump()

    def test_comparison_budget(self):
        """Test the comparison budget is enforced before scoring."""
        assigner = GreedyAssigner(merge_configs(self.config, {"matching": {"max_comparisons": 3}}))
        left = make_records(["TSH", "Ferritine"], "CDL", "L")
        right = make_records(["TSH", "Ferritine"], "Dynacare", "R")

        with pytest.raises(MatchingBudgetExceeded):
            assigner.match(left, right)

    def test_time_budget(self, monkeypatch):
        """Test the wall-clock budget is enforced during scoring."""
        assigner = GreedyAssigner(merge_configs(self.config, {"matching": {"max_seconds": 1}}))
        left = make_records(["TSH"], "CDL", "L")
        right = make_records(["TSH", "Ferritine"], "Dynacare", "R")

        clock = itertools.count(0, 100)
        monkeypatch.setattr(time, "monotonic", lambda: next(clock))

        with pytest.raises(MatchingBudgetExceeded):
            assigner.match(left, right)


if __name__ == "__main__":
    pytest.main([__file__])

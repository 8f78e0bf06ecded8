"""
Main pipeline orchestrator for LabMatch.

Coordinates the canonical catalog build from catalog ingestion through
deduplication, specimen enrichment, matching, catalog construction and
reporting, and writes the output document atomically.
"""

import argparse
import json
import logging
import os
import sys
import tempfile
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from ..config import DEFAULT_CONFIG_PATH, load_config, merge_configs, validate_config
from ..ingestion.catalog_loader import (
    deduplicate_codes,
    enrich_with_specimens,
    load_catalog,
    records_from_frame,
)
from ..ingestion.schema_validator import validate_catalog
from ..match.assigner import GreedyAssigner
from ..merge.catalog_builder import CanonicalCatalogBuilder
from ..models import LabTestRecord, MatchResult
from ..reporting.match_report import build_match_report
from ..reporting.summary import build_metadata, format_console_summary

logger = logging.getLogger(__name__)


class CatalogBuildPipeline:
    """
    Main pipeline orchestrator for LabMatch.

    Runs as one synchronous batch: every input is read and validated before
    matching starts, and nothing is written unless the whole build succeeds.
    """

    def __init__(self, config_path: Optional[str] = DEFAULT_CONFIG_PATH,
                 overrides: Optional[Dict[str, Any]] = None):
        """
        Initialize pipeline with configuration.

        Args:
            config_path: Path to configuration file
            overrides: Values merged over the loaded configuration (e.g. from CLI flags)
        """
        self.config_path = config_path
        self.config = load_config(config_path)
        if overrides:
            self.config = merge_configs(self.config, overrides)
            validate_config(self.config)

        self.left_lab = self.config["labs"]["left"]
        self.right_lab = self.config["labs"]["right"]

        self.assigner = GreedyAssigner(self.config)
        self.builder = CanonicalCatalogBuilder(self.config)

        # Pipeline state
        self.pipeline_start_time = None
        self.stage_times = {}

        logger.info("Initialized LabMatch pipeline")

    def _start_stage_timer(self, stage_name: str):
        """Start timing for a pipeline stage."""
        self.stage_times[stage_name] = time.time()
        logger.info(f"Starting stage: {stage_name}")

    def _end_stage_timer(self, stage_name: str):
        """End timing for a pipeline stage."""
        if stage_name in self.stage_times:
            duration = time.time() - self.stage_times[stage_name]
            logger.info(f"Completed stage: {stage_name} in {duration:.2f} seconds")

    def load_inputs(self, left_path: str, right_path: str,
                    specimen_path: Optional[str] = None) -> Tuple[List[LabTestRecord], List[LabTestRecord], Dict[str, int]]:
        """
        Load, validate, deduplicate and enrich both catalogs.

        Args:
            left_path: Left catalog JSON path
            right_path: Right catalog JSON path
            specimen_path: Specimen side table JSON path (optional)

        Returns:
            Tuple of (left records, right records, source counts)
        """
        self._start_stage_timer("data_ingestion")

        ingestion = self.config.get("ingestion", {})
        required = ingestion.get("required_columns", ["code", "raw_name"])

        left_name = f"{self.left_lab} catalog"
        right_name = f"{self.right_lab} catalog"

        left_df = load_catalog(left_path, left_name)
        validate_catalog(left_df, left_name, required)
        right_df = load_catalog(right_path, right_name)
        validate_catalog(right_df, right_name, required)

        specimen_df = pd.DataFrame()
        if specimen_path:
            specimen_name = "specimen side table"
            specimen_df = load_catalog(specimen_path, specimen_name)
            validate_catalog(specimen_df, specimen_name,
                             ingestion.get("specimen_required_columns", ["code"]))

        left_deduped = deduplicate_codes(left_df)
        right_deduped = deduplicate_codes(right_df)
        left_enriched, enriched_count = enrich_with_specimens(left_deduped, specimen_df)

        left_records = records_from_frame(left_enriched, self.left_lab)
        right_records = records_from_frame(right_deduped, self.right_lab)

        source_counts = {
            "main": len(left_df),
            "specimen_entries": len(specimen_df),
            "enriched": enriched_count,
            "deduplicated": len(left_records),
            "right": len(right_records),
        }

        logger.info(f"{self.left_lab}: {len(left_records)} ({enriched_count} enriched with specimen data)")
        logger.info(f"{self.right_lab}: {len(right_records)}")

        self._end_stage_timer("data_ingestion")
        return left_records, right_records, source_counts

    def match(self, left: List[LabTestRecord], right: List[LabTestRecord]) -> MatchResult:
        """
        Run cross-catalog matching.

        Args:
            left: Left catalog records
            right: Right catalog records

        Returns:
            MatchResult from the greedy assigner
        """
        self._start_stage_timer("matching")
        result = self.assigner.match(left, right, threshold=self.config["matching"]["threshold"])
        self._end_stage_timer("matching")
        return result

    def build_document(self, left: List[LabTestRecord], right: List[LabTestRecord],
                       result: MatchResult, source_counts: Dict[str, int],
                       generated_at: Optional[str] = None) -> Dict[str, Any]:
        """
        Build the canonical catalog output document.

        Args:
            left: Left catalog records
            right: Right catalog records
            result: Matcher output
            source_counts: Counts gathered during ingestion
            generated_at: Timestamp to record (optional)

        Returns:
            Document with metadata, canonical_catalog and conflicts
        """
        self._start_stage_timer("catalog_build")

        catalog = self.builder.build(left, right, result.assignments,
                                     result.unmatched_left, result.unmatched_right)
        conflicts = self.builder.format_conflicts(left, right, result.conflicts)
        variants = self.builder.find_specimen_variants(catalog)
        metadata = build_metadata(self.config, catalog, conflicts, variants, source_counts, generated_at)

        self._end_stage_timer("catalog_build")
        return {
            "metadata": metadata,
            "canonical_catalog": catalog,
            "conflicts": conflicts,
        }

    def run_pipeline(self, left_path: str, right_path: str, specimen_path: Optional[str],
                     output_path: str, match_report_path: Optional[str] = None,
                     generated_at: Optional[str] = None) -> Dict[str, Any]:
        """
        Run the complete catalog build.

        Args:
            left_path: Left catalog JSON path
            right_path: Right catalog JSON path
            specimen_path: Specimen side table JSON path (optional)
            output_path: Path of the canonical catalog document
            match_report_path: Path of the pair-level match report (optional)
            generated_at: Timestamp to record instead of the current time

        Returns:
            The canonical catalog document
        """
        self.pipeline_start_time = time.time()
        logger.info(f"Starting LabMatch pipeline for {left_path} and {right_path}")

        try:
            left, right, source_counts = self.load_inputs(left_path, right_path, specimen_path)
            result = self.match(left, right)
            document = self.build_document(left, right, result, source_counts, generated_at)

            report = None
            if match_report_path:
                report = build_match_report(
                    left, right, result, document["conflicts"],
                    self.left_lab, self.right_lab, self.config["matching"]["threshold"],
                    generated_at=document["metadata"]["generated_at"],
                )

            self._start_stage_timer("output")
            outputs = [(document, output_path)]
            if report is not None:
                outputs.append((report, match_report_path))
            self.write_outputs(outputs)
            self._end_stage_timer("output")

            total_duration = time.time() - self.pipeline_start_time
            logger.info(f"Pipeline completed successfully in {total_duration:.2f} seconds")

            return document

        except Exception as e:
            logger.error(f"Pipeline failed: {e}")
            raise

    def write_outputs(self, outputs: List[Tuple[Dict[str, Any], str]]):
        """
        Write several documents all-or-nothing.

        Every document is serialized to a temp file beside its target first;
        targets are replaced only once all temp files are written.

        Args:
            outputs: (document, destination path) pairs
        """
        staged = []
        try:
            for document, output_path in outputs:
                staged.append((self._stage_json(document, output_path), output_path))
        except BaseException:
            for tmp_path, _ in staged:
                Path(tmp_path).unlink(missing_ok=True)
            raise

        for tmp_path, output_path in staged:
            os.replace(tmp_path, output_path)
            logger.info(f"Results saved to {output_path}")

    def _stage_json(self, document: Dict[str, Any], output_path: str) -> str:
        """Serialize a document to a temp file in the target's directory and return its path."""
        target = Path(output_path)
        target.parent.mkdir(parents=True, exist_ok=True)
        indent = self.config.get("output", {}).get("indent", 2)

        tmp = tempfile.NamedTemporaryFile(
            mode="w", encoding="utf-8", dir=target.parent,
            prefix=f".{target.name}.", suffix=".tmp", delete=False
        )
        try:
            with tmp:
                json.dump(document, tmp, indent=indent, ensure_ascii=False)
        except BaseException:
            Path(tmp.name).unlink(missing_ok=True)
            raise
        return tmp.name


def _build_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    matching = {}
    if args.threshold is not None:
        matching["threshold"] = args.threshold
    if args.workers is not None:
        matching["workers"] = args.workers
    if args.max_seconds is not None:
        matching["max_seconds"] = args.max_seconds
    return {"matching": matching} if matching else {}


def main(argv: Optional[List[str]] = None):
    """Main entry point for the LabMatch catalog build."""
    parser = argparse.ArgumentParser(description="LabMatch Canonical Test Catalog Builder")
    parser.add_argument("--left", required=True, help="Left lab catalog (JSON array)")
    parser.add_argument("--right", required=True, help="Right lab catalog (JSON array)")
    parser.add_argument("--specimens", help="Specimen collection side table for the left lab (JSON array)")
    parser.add_argument("--output", default="canonical_test_catalog.json", help="Output document path")
    parser.add_argument("--match-report", help="Optional pair-level match report path")
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="Configuration file path")
    parser.add_argument("--threshold", type=float, help="Override matching.threshold")
    parser.add_argument("--workers", type=int, help="Override matching.workers")
    parser.add_argument("--max-seconds", type=float, help="Override matching.max_seconds")
    parser.add_argument("--generated-at", help="Pin metadata.generated_at (reproducible output)")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--log-file", help="Also write logs to this file")

    args = parser.parse_args(argv)

    handlers = [logging.StreamHandler()]
    if args.log_file:
        Path(args.log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(args.log_file))

    # Setup logging
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers
    )

    try:
        pipeline = CatalogBuildPipeline(args.config, _build_overrides(args))
        document = pipeline.run_pipeline(
            left_path=args.left,
            right_path=args.right,
            specimen_path=args.specimens,
            output_path=args.output,
            match_report_path=args.match_report,
            generated_at=args.generated_at
        )

        print(format_console_summary(document, pipeline.left_lab, pipeline.right_lab))

    except Exception as e:
        logger.error(f"Pipeline execution failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
Monthly reconciliation pipeline for the elder-care survey dashboard

This pipeline runs one reporting month end to end:
1. Load submissions (and the institution roster)
2. Validate every submission
3. Aggregate by region
4. Estimate care burden per region
5. Export result tables

Usage:
    python -m pipelines.monthly_reconciliation --input FILE [--directory FILE] [--month LABEL]

Example:
    python -m pipelines.monthly_reconciliation --input data/raw/surveys.json
    python -m pipelines.monthly_reconciliation --input data/raw/2025_3월.xlsx \\
        --directory data/raw/institution_profiles.json --output-dir data/exports
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from care_survey.aggregation.regional import AggregationResult, aggregate_month
from care_survey.calculators.care_burden import CareBurdenEstimator, CareBurdenStatus, interpret_status
from care_survey.directory import InstitutionDirectory
from care_survey.months import latest_month, parse_month_label
from care_survey.submission import Submission, submissions_from_frame, submissions_from_records
from care_survey.validators.consistency import validate_batch
from infrastructure.utilities.common import (
    DataProcessor,
    get_project_root,
    load_settings,
    save_yaml_config,
    setup_logging,
    solitary_estimates_from,
)

logger = logging.getLogger(__name__)


class ReconciliationRunner:
    """
    Orchestrate one month of validation, aggregation and estimation
    """

    def __init__(
        self,
        input_path: Path,
        directory_path: Optional[Path] = None,
        month: Optional[str] = None,
        output_dir: Optional[Path] = None,
        settings: Optional[dict] = None,
    ):
        """
        Initialize pipeline

        Args:
            input_path: Survey file (JSON, CSV, Excel)
            directory_path: Roster file; without it the submitters stand in
            month: Month label (e.g. "2025_3월"); defaults to the latest
            output_dir: Where exports are written
            settings: Loaded YAML settings
        """
        self.input_path = Path(input_path)
        self.directory_path = Path(directory_path) if directory_path else None
        self.month = month
        self.output_dir = Path(output_dir) if output_dir else get_project_root() / "data" / "exports"
        self.settings = settings or {}

        self.processor = DataProcessor()

        self.submissions: List[Submission] = []
        self.directory: Optional[InstitutionDirectory] = None
        self.violations: Dict[str, Dict[str, str]] = {}
        self.aggregation: Optional[AggregationResult] = None
        self.care_statuses: List[CareBurdenStatus] = []

        self.steps_completed = []
        self.steps_failed = []

    def _banner(self, title: str):
        logger.info("=" * 60)
        logger.info(title)
        logger.info("=" * 60)

    def _load_submissions(self) -> List[Submission]:
        if self.input_path.suffix == '.json':
            data = self.processor.load_json(self.input_path)
            if isinstance(data, dict):
                # {"2025_3월": [...], "2025_2월": [...]}
                if not self.month:
                    self.month = latest_month(data.keys())
                if self.month not in data:
                    raise KeyError(f"Month {self.month!r} not in {self.input_path}")
                return submissions_from_records(data[self.month])
            return submissions_from_records(data)

        df = self.processor.load_data(self.input_path)
        return submissions_from_frame(df)

    def step_load(self) -> bool:
        """
        Step 1: Load submissions and roster

        Returns:
            True if successful
        """
        self._banner("STEP 1: LOAD DATA")

        self.submissions = self._load_submissions()
        if not self.month:
            # CSV / Excel sheets are named after their month
            stem = self.input_path.stem
            self.month = stem if parse_month_label(stem) else "unlabelled"
        logger.info(f"Loaded {len(self.submissions)} submission(s) for {self.month}")

        if self.directory_path:
            records = self.processor.load_records(self.directory_path)
            self.directory = InstitutionDirectory.from_records(records)
            logger.info(f"Loaded roster of {len(self.directory)} institution(s)")
        else:
            logger.warning("No roster given; using the submitters as the roster")
            self.directory = InstitutionDirectory.from_submissions(self.submissions)

        return True

    def step_validate(self) -> bool:
        """Step 2: Validate every submission"""
        self._banner("STEP 2: VALIDATE")

        self.violations = validate_batch(self.submissions, self.directory)
        logger.info(
            f"{len(self.violations)} of {len(self.submissions)} submission(s) have violations"
        )
        return True

    def step_aggregate(self) -> bool:
        """Step 3: Regional rollups"""
        self._banner("STEP 3: AGGREGATE BY REGION")

        self.aggregation = aggregate_month(self.submissions, self.directory)
        if self.aggregation.unmatched_count:
            logger.warning(
                f"{self.aggregation.unmatched_count} submission(s) not in the roster: "
                f"{', '.join(self.aggregation.unmatched_codes) or 'no institution code'}"
            )
        return True

    def step_estimate(self) -> bool:
        """Step 4: Care burden per region"""
        self._banner("STEP 4: ESTIMATE CARE BURDEN")

        estimator = CareBurdenEstimator(solitary_estimates_from(self.settings))
        self.care_statuses = estimator.estimate_regions(self.aggregation.ordered())
        for status in self.care_statuses:
            if status.is_overloaded:
                logger.warning(interpret_status(status))
        return True

    def step_export(self) -> bool:
        """Step 5: Write result tables"""
        self._banner("STEP 5: EXPORT")

        self.output_dir.mkdir(parents=True, exist_ok=True)

        rows = [
            {'기관코드': code, 'field': field, 'message': message}
            for code, errors in self.violations.items()
            for field, message in errors.items()
        ]
        validation_df = pd.DataFrame(rows, columns=['기관코드', 'field', 'message'])
        self.processor.save_data(validation_df, self.output_dir / f"validation_{self.month}.csv")

        self.processor.save_data(
            self.aggregation.to_frame(),
            self.output_dir / f"region_rollups_{self.month}.csv",
        )
        self.processor.save_data(
            CareBurdenEstimator.to_frame(self.care_statuses),
            self.output_dir / f"care_burden_{self.month}.csv",
        )
        save_yaml_config(self.summary(), self.output_dir / f"summary_{self.month}.yaml")
        return True

    def summary(self) -> dict:
        province = self.aggregation.province if self.aggregation else None
        return {
            'month': self.month,
            'submissions': len(self.submissions),
            'submissions_with_violations': len(self.violations),
            'submission_rate': province.submission_rate if province else 0,
            'expected': province.expected if province else 0,
            'unmatched_codes': list(self.aggregation.unmatched_codes) if self.aggregation else [],
            'codeless_submissions': self.aggregation.codeless_count if self.aggregation else 0,
            'overloaded_regions': [s.region for s in self.care_statuses if s.is_overloaded],
            'steps_completed': list(self.steps_completed),
            'steps_failed': list(self.steps_failed),
        }

    def run(self) -> bool:
        """
        Run all steps in order, stopping at the first failure

        Returns:
            True if every step succeeded
        """
        steps = [
            ('load', self.step_load),
            ('validate', self.step_validate),
            ('aggregate', self.step_aggregate),
            ('estimate', self.step_estimate),
            ('export', self.step_export),
        ]

        for name, step in steps:
            try:
                ok = step()
            except (FileNotFoundError, KeyError, ValueError) as e:
                logger.error(f"Step '{name}' failed: {e}")
                ok = False

            if not ok:
                self.steps_failed.append(name)
                return False
            self.steps_completed.append(name)

        logger.info(f"Pipeline complete: {', '.join(self.steps_completed)}")
        return True


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Validate and aggregate one month of elder-care survey submissions"
    )
    parser.add_argument('--input', required=True, type=Path, help="Survey file (JSON, CSV, Excel)")
    parser.add_argument('--directory', type=Path, help="Institution roster (JSON, YAML, CSV, Excel)")
    parser.add_argument('--month', help='Month label, e.g. "2025_3월"')
    parser.add_argument('--config', type=Path, help="Settings YAML (default: config/reconciliation.yaml)")
    parser.add_argument('--output-dir', type=Path, help="Directory for exported tables")
    parser.add_argument('--log-level', default=None, help="DEBUG, INFO, WARNING, ERROR")

    args = parser.parse_args(argv)

    settings = load_settings(args.config)
    log_level = args.log_level or (settings.get('logging') or {}).get('level', 'INFO')
    setup_logging(log_level)

    runner = ReconciliationRunner(
        input_path=args.input,
        directory_path=args.directory or (Path(settings['directory']) if settings.get('directory') else None),
        month=args.month,
        output_dir=args.output_dir,
        settings=settings,
    )

    return 0 if runner.run() else 1


if __name__ == "__main__":
    sys.exit(main())

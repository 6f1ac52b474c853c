"""
The core application service, containing the check workflow.

This module defines the main orchestrator (CompatibilityChecker) that turns
user targets into a comparison job, and the report builder
(ReportBuilder) that applies client-side filters to its results.
"""

import logging
from typing import Iterable, List, Sequence

from tqdm.contrib.logging import logging_redirect_tqdm

from .dependencies import identify_roots
from .domain import *
from .exceptions import InputError, InvalidFilterError
from .filtering import advisory_for, filter_response, matches_file

logger = logging.getLogger(__name__)


def validate_device_filters(devices: Iterable[str]):
    """Rejects device filters that can never match a known device."""
    for device in sorted(devices):
        if device not in KNOWN_DEVICES:
            raise InvalidFilterError(
                f"invalid device '{device}'. "
                f"Valid devices: {', '.join(KNOWN_DEVICES)}"
            )


class ReportBuilder:
    """Applies a set of filter criteria to comparison results."""

    def __init__(self, criteria: FilterCriteria):
        """Initializes the builder with the criteria of one invocation."""
        self.logger = logging.getLogger(self.__class__.__name__)
        self.criteria = criteria

    def single(
        self, filename: str, response: ComparisonResponse
    ) -> FileReport:
        """Builds the report of a single-file job."""

        filtered = filter_response(
            response, self.criteria.devices, self.criteria.versions
        )
        return FileReport(
            filename=filename,
            response=filtered,
            original_total=response.total_checked,
            advisory=advisory_for(response.total_checked, filtered),
        )

    def batch(
        self, batch: BatchComparisonResponse, roots: Iterable[str]
    ) -> List[FileReport]:
        """
        Builds the reports of a batch job, one per displayed root.

        Roots are visited in lexical order. A root is skipped when it does
        not match the file patterns, or when only failures are requested
        and none is left after filtering.
        """

        reports = []
        for filename in sorted(roots):
            if not matches_file(filename, self.criteria.files):
                self.logger.debug(f"Skipping {filename}: file filter.")
                continue

            report = self.single(filename, batch[filename])

            if self.criteria.failed_only and not report.has_incompatible:
                self.logger.debug(f"Skipping {filename}: no failures.")
                continue

            reports.append(report)

        return reports


class CompatibilityChecker:
    """Orchestrates uploading, waiting for, and filtering a comparison."""

    def __init__(self, source: ComparisonSource, uploads: UploadSource):
        """Initializes the checker with its ports."""
        self.source = source
        self.uploads = uploads

    def _check_single(
        self, upload: FileUpload, builder: ReportBuilder
    ) -> CheckOutcome:
        logger.info(f"Uploading {upload.filename}...")
        response = self.source.compare(upload)
        report = builder.single(upload.filename, response)
        return CheckOutcome(reports=(report,))

    def _check_batch(
        self, uploads: Sequence[FileUpload], builder: ReportBuilder
    ) -> CheckOutcome:
        logger.info(f"Uploading {len(uploads)} files...")
        batch = self.source.compare_batch(uploads)

        roots = identify_roots(batch)
        dependencies = tuple(sorted(set(batch) - roots))
        collapsed = bool(batch) and not roots

        if collapsed:
            logger.warning(
                "Every file in the batch is referenced as a dependency of "
                "another file; no root file is left to report on."
            )

        return CheckOutcome(
            reports=tuple(builder.batch(batch, roots)),
            dependencies=dependencies,
            batch=batch,
            roots_collapsed=collapsed,
        )

    def run(
        self, targets: Sequence[str], criteria: FilterCriteria
    ) -> CheckOutcome:
        """
        Checks the compatibility of the given files or directories.

        One resolved file is sent as a single-file job; several are sent
        together as one batch so the server can resolve dependencies
        between them.

        Args:
            targets: Paths to .qmd files or directories containing them.
            criteria: Filters to apply to the results.

        Returns:
            The filtered outcome. ``outcome.passed`` is False when any
            reported file has an incompatible row.

        Raises:
            InputError: If the targets cannot be resolved or read.
            InfrastructureError: If the job fails on the remote side.
        """

        validate_device_filters(criteria.devices)

        uploads = self.uploads.collect(targets)
        if not uploads:
            raise InputError("no .qmd files found")

        builder = ReportBuilder(criteria)

        with logging_redirect_tqdm():
            if len(uploads) == 1:
                outcome = self._check_single(uploads[0], builder)
            else:
                outcome = self._check_batch(uploads, builder)

        logger.info(
            f"Check finished: {len(outcome.reports)} report(s), "
            f"{'passed' if outcome.passed else 'failed'}."
        )
        return outcome

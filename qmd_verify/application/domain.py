"""
This module defines the core domain models for the application.

These classes represent the technology-agnostic entities that the
comparison, filtering and reporting logic operates on, together with the
ports implemented by the infrastructure layer.
"""

import dataclasses
import enum

from abc import ABC, abstractmethod
from typing import (
    FrozenSet, Generic, Iterable, Mapping, Optional, Sequence, Tuple, TypeVar
)


T = TypeVar("T")

KNOWN_DEVICES = ("rm1", "rm2", "rmpp", "rmppm")


# --- Domain Models ---

@dataclasses.dataclass(frozen=True)
class HashError:
    """A single hash lookup failure reported for a dependency."""

    hash_id: int
    error: str


@dataclasses.dataclass(frozen=True)
class DependencyOutcome:
    """Validation outcome of one dependency file of a compared QMD file."""

    status: str
    hash_errors: Tuple[HashError, ...] = ()


@dataclasses.dataclass(frozen=True)
class ComparisonResult:
    """One (device, OS version) compatibility verdict for one file."""

    hashtable: str
    os_version: str
    device: str
    compatible: bool
    error_detail: Optional[str] = None
    validation_mode: str = ""
    files_processed: Optional[int] = None
    files_modified: Optional[int] = None
    files_with_errors: Optional[int] = None
    tree_validation_used: bool = False
    dependency_results: Optional[Mapping[str, DependencyOutcome]] = None


@dataclasses.dataclass(frozen=True)
class ComparisonResponse:
    """The per-file result of a comparison job."""

    compatible: Tuple[ComparisonResult, ...] = ()
    incompatible: Tuple[ComparisonResult, ...] = ()
    total_checked: int = 0
    mode: str = ""

    def results(self) -> Iterable[ComparisonResult]:
        """Iterates over compatible and then incompatible results."""
        yield from self.compatible
        yield from self.incompatible


# Keyed by the relative path supplied at upload time. Not ordered.
BatchComparisonResponse = Mapping[str, ComparisonResponse]


class JobStatus(str, enum.Enum):
    """Statuses a comparison job can report while being polled."""

    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str) -> "JobStatus":
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN

    @property
    def is_pending(self) -> bool:
        return self in (JobStatus.PENDING, JobStatus.RUNNING)


@dataclasses.dataclass(frozen=True)
class JobPoll(Generic[T]):
    """The interpretation of a single poll of a job."""

    status: JobStatus
    result: Optional[T] = None
    error: Optional[str] = None
    raw_status: str = ""


@dataclasses.dataclass(frozen=True)
class FileUpload:
    """A local file read into memory, ready to be submitted."""

    filename: str
    content: bytes
    path: str


@dataclasses.dataclass(frozen=True)
class FilterCriteria:
    """
    Client-side filters applied to a comparison result.

    An empty set puts no constraint on its axis. ``files`` and
    ``failed_only`` only apply to batch jobs.
    """

    devices: FrozenSet[str] = frozenset()
    versions: FrozenSet[str] = frozenset()
    files: FrozenSet[str] = frozenset()
    failed_only: bool = False

    @classmethod
    def from_values(
        cls,
        devices: Optional[Iterable[str]] = None,
        versions: Optional[Iterable[str]] = None,
        files: Optional[Iterable[str]] = None,
        failed_only: bool = False,
    ) -> "FilterCriteria":
        return cls(
            devices=frozenset(devices or ()),
            versions=frozenset(versions or ()),
            files=frozenset(files or ()),
            failed_only=failed_only,
        )


class Advisory(enum.Enum):
    """Why a report ended up with nothing to show."""

    NO_HASHTABLES = (
        "Server has no hashtables to compare against this QMD file"
    )
    NO_MATCH = "No devices matched your filter criteria"


@dataclasses.dataclass(frozen=True)
class FileReport:
    """The filtered result for one displayed file."""

    filename: str
    response: ComparisonResponse
    original_total: int
    advisory: Optional[Advisory] = None

    @property
    def has_incompatible(self) -> bool:
        return bool(self.response.incompatible)


@dataclasses.dataclass(frozen=True)
class CheckOutcome:
    """
    Final result of one check invocation.

    ``reports`` holds the files shown to the user, in display order.
    ``dependencies`` names batch files that were only referenced by other
    files; their results stay in ``batch`` but are never reported on their
    own.
    """

    reports: Tuple[FileReport, ...]
    dependencies: Tuple[str, ...] = ()
    batch: Optional[BatchComparisonResponse] = None
    roots_collapsed: bool = False

    @property
    def passed(self) -> bool:
        return not any(report.has_incompatible for report in self.reports)


# --- Ports (Interfaces) ---

class ComparisonSource(ABC):
    """A port for any service able to run comparison jobs."""

    @abstractmethod
    def compare(self, upload: FileUpload) -> ComparisonResponse:
        """Runs a single-file job and waits for its result."""
        pass

    @abstractmethod
    def compare_batch(
        self, uploads: Sequence[FileUpload]
    ) -> BatchComparisonResponse:
        """Runs a multi-file job and waits for its per-file results."""
        pass


class UploadSource(ABC):
    """A port for anything that turns user targets into uploads."""

    @abstractmethod
    def collect(self, targets: Sequence[str]) -> Sequence[FileUpload]:
        """
        Resolves targets into uploads.
        Raises InputError before any network activity.
        """
        pass

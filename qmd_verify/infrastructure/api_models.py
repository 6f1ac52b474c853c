"""
Pydantic models for validating the structure of responses from the
qmd-check server.

These models serve as the contract for the JSON exchanged with the server.
Unknown fields are ignored, and null collections are accepted as empty,
because the server omits or nulls them depending on the job shape.
"""

from typing import Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

T = TypeVar("T")


class HashErrorModel(BaseModel):
    """A hash lookup failure inside a dependency validation."""

    hash_id: int
    error: str = ""


class ValidationResultModel(BaseModel):
    """Validation outcome of one dependency file."""

    status: str = ""
    hash_errors: List[HashErrorModel] = Field(default_factory=list)

    @field_validator("hash_errors", mode="before")
    @classmethod
    def null_as_empty(cls, value):
        return [] if value is None else value


class ComparisonResultModel(BaseModel):
    """One device/OS version verdict as sent by the server."""

    hashtable: str = ""
    os_version: str
    device: str
    compatible: bool
    error_detail: Optional[str] = None
    validation_mode: str = ""
    files_processed: Optional[int] = None
    files_modified: Optional[int] = None
    files_with_errors: Optional[int] = None
    tree_validation_used: bool = False
    dependency_results: Optional[Dict[str, ValidationResultModel]] = None


class ComparisonResponseModel(BaseModel):
    """The per-file result object of a comparison job."""

    compatible: List[ComparisonResultModel] = Field(default_factory=list)
    incompatible: List[ComparisonResultModel] = Field(default_factory=list)
    total_checked: int = 0
    mode: str = ""

    @field_validator("compatible", "incompatible", mode="before")
    @classmethod
    def null_as_empty(cls, value):
        return [] if value is None else value

    def has_data(self) -> bool:
        """True when the object carries real comparison rows or counts."""
        return (
            self.total_checked > 0
            or bool(self.compatible)
            or bool(self.incompatible)
        )


class JobEnvelope(BaseModel, Generic[T]):
    """
    The wrapped job-status shape of a poll response.

    ``results`` is only present once the job succeeded; ``error`` or
    ``message`` carry the reason of a failed job.
    """

    status: str
    results: Optional[T] = None
    error: Optional[str] = None
    message: Optional[str] = None


class CompareJobResponse(BaseModel):
    """Response to a job submission."""

    model_config = ConfigDict(populate_by_name=True)

    job_id: str = Field(default="", alias="jobId")


class ErrorResponse(BaseModel):
    """A structured error body."""

    error: str


class HashtableInfo(BaseModel):
    """A comparison dataset available on the server."""

    name: str
    os_version: str
    device: str
    entry_count: int = 0


class HashtablesResponse(BaseModel):
    hashtables: List[HashtableInfo] = Field(default_factory=list)
    count: int = 0

    @field_validator("hashtables", mode="before")
    @classmethod
    def null_as_empty(cls, value):
        return [] if value is None else value


class TreeInfo(BaseModel):
    """A dependency tree available on the server."""

    version: str
    device: str
    qml_count: int = 0
    path: str = ""
    directory: str = ""


class TreesResponse(BaseModel):
    trees: List[TreeInfo] = Field(default_factory=list)
    count: int = 0

    @field_validator("trees", mode="before")
    @classmethod
    def null_as_empty(cls, value):
        return [] if value is None else value


class VersionResponse(BaseModel):
    """Build information of the server."""

    version: str = ""
    commit: str = ""
    build_time: str = ""

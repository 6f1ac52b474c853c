"""HTTP implementation of the ComparisonSource port."""

from typing import Dict, List, Optional, Sequence, Tuple

import httpx
from pydantic import ValidationError

from ..application.domain import *
from ..application.exceptions import ProtocolError

from .api_models import (
    ComparisonResponseModel,
    ComparisonResultModel,
    CompareJobResponse,
    HashtablesResponse,
    TreesResponse,
    VersionResponse,
)
from .base_client import BaseClient
from .decoder import ResponseDecoder, batch_result_decoder, single_result_decoder
from .polling import JobPoller

_COMPARE_ENDPOINT = "/api/compare"
_RESULTS_ENDPOINT = "/api/results/"
_HASHTABLES_ENDPOINT = "/api/hashtables"
_TREES_ENDPOINT = "/api/trees"
_VERSION_ENDPOINT = "/api/version"

_CONTENT_TYPE = "application/octet-stream"


class HttpComparisonClient(BaseClient, ComparisonSource):
    """A comparison source that runs jobs on a qmd-check server."""

    def __init__(self, client: httpx.Client, base_url: str, poller: JobPoller):
        """Initializes the comparison source adapter."""
        super().__init__(client, base_url)
        self.poller = poller

    # --- Mapping ---

    def _map_result(self, dto: ComparisonResultModel) -> ComparisonResult:
        """Maps a single API DTO to a domain model."""
        dependencies = None
        if dto.dependency_results is not None:
            dependencies = {
                name: DependencyOutcome(
                    status=outcome.status,
                    hash_errors=tuple(
                        HashError(hash_id=e.hash_id, error=e.error)
                        for e in outcome.hash_errors
                    ),
                )
                for name, outcome in dto.dependency_results.items()
            }

        return ComparisonResult(
            hashtable=dto.hashtable,
            os_version=dto.os_version,
            device=dto.device,
            compatible=dto.compatible,
            error_detail=dto.error_detail,
            validation_mode=dto.validation_mode,
            files_processed=dto.files_processed,
            files_modified=dto.files_modified,
            files_with_errors=dto.files_with_errors,
            tree_validation_used=dto.tree_validation_used,
            dependency_results=dependencies,
        )

    def _map_response(self, dto: ComparisonResponseModel) -> ComparisonResponse:
        return ComparisonResponse(
            compatible=tuple(self._map_result(r) for r in dto.compatible),
            incompatible=tuple(self._map_result(r) for r in dto.incompatible),
            total_checked=dto.total_checked,
            mode=dto.mode,
        )

    # --- Job protocol ---

    def _submit(self, files: List[Tuple], data: Optional[Dict] = None) -> str:
        """Uploads the multipart body and returns the new job's id."""

        response = self._send("POST", _COMPARE_ENDPOINT, files=files, data=data)
        self._raise_for_status(response)

        try:
            job = CompareJobResponse.model_validate_json(response.content)
        except ValidationError as e:
            raise ProtocolError(f"failed to decode job response: {e}") from e

        if not job.job_id:
            raise ProtocolError("server returned empty job ID")

        self.logger.info(f"Submitted comparison job {job.job_id}.")
        return job.job_id

    def _poll(self, job_id: str, decoder: ResponseDecoder) -> JobPoll:
        """Fetches the status of a job once."""

        response = self._send("GET", _RESULTS_ENDPOINT + job_id)

        if response.status_code == httpx.codes.ACCEPTED:
            return JobPoll(
                status=JobStatus.RUNNING, raw_status=JobStatus.RUNNING.value
            )

        self._raise_for_status(response)
        return decoder.decode(response.content)

    def _poll_single(self, job_id: str) -> JobPoll[ComparisonResponseModel]:
        return self._poll(job_id, single_result_decoder)

    def _poll_batch(
        self, job_id: str
    ) -> JobPoll[Dict[str, ComparisonResponseModel]]:
        return self._poll(job_id, batch_result_decoder)

    def submit(self, upload: FileUpload) -> str:
        """Submits a single-file comparison job."""
        files = [("file", (upload.filename, upload.content, _CONTENT_TYPE))]
        return self._submit(files)

    def submit_batch(self, uploads: Sequence[FileUpload]) -> str:
        """
        Submits a multi-file comparison job.

        Each file travels with its relative path in a positional ``paths``
        field so the server can resolve dependencies between them.
        """
        files = [
            ("files", (upload.filename, upload.content, _CONTENT_TYPE))
            for upload in uploads
        ]
        data = {"paths": [upload.path for upload in uploads]}
        return self._submit(files, data)

    def await_result(self, job_id: str) -> ComparisonResponse:
        """Polls a single-file job until it finishes."""
        dto = self.poller.wait_for(job_id, self._poll_single)
        return self._map_response(dto)

    def await_batch_result(self, job_id: str) -> BatchComparisonResponse:
        """Polls a multi-file job until it finishes."""
        dtos = self.poller.wait_for(job_id, self._poll_batch)
        return {
            filename: self._map_response(dto) for filename, dto in dtos.items()
        }

    def compare(self, upload: FileUpload) -> ComparisonResponse:
        """
        Runs a single-file comparison job.

        This method serves as the public contract fulfillment for the
        ComparisonSource port.

        Args:
            upload: The file to compare.

        Returns:
            The server's per-device, per-version verdicts.

        Raises:
            InfrastructureError: If submitting or polling fails.
        """

        job_id = self.submit(upload)
        response = self.await_result(job_id)

        self.logger.info(
            f"Job {job_id} checked {response.total_checked} hashtable(s)."
        )
        return response

    def compare_batch(
        self, uploads: Sequence[FileUpload]
    ) -> BatchComparisonResponse:
        """Runs a multi-file comparison job. See ``compare``."""

        job_id = self.submit_batch(uploads)
        batch = self.await_batch_result(job_id)

        self.logger.info(f"Job {job_id} returned results for {len(batch)} files.")
        return batch

    # --- Listing ---

    def list_hashtables(self) -> HashtablesResponse:
        """Fetches the comparison datasets loaded on the server."""
        return self._get_model(_HASHTABLES_ENDPOINT, HashtablesResponse)

    def list_trees(self) -> TreesResponse:
        """Fetches the dependency trees loaded on the server."""
        return self._get_model(_TREES_ENDPOINT, TreesResponse)

    def get_version(self) -> VersionResponse:
        """Fetches the server's build information."""
        return self._get_model(_VERSION_ENDPOINT, VersionResponse)

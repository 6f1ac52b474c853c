"""
Decoding of job poll bodies.

The results endpoint answers either with a bare result object or with a
job envelope carrying a status, and never says which. A body is first read
as a bare result and accepted if it holds real data; otherwise it is read
as an envelope. A body that is neither is a protocol error.
"""

import logging
from typing import Callable, Dict, Generic, Type, TypeVar

from pydantic import TypeAdapter, ValidationError

from ..application.domain import JobPoll, JobStatus
from ..application.exceptions import ProtocolError

from .api_models import ComparisonResponseModel, JobEnvelope

logger = logging.getLogger(__name__)

T = TypeVar("T")

_FALLBACK_ERROR = "unknown error"


class ResponseDecoder(Generic[T]):
    """Interprets a poll body as either a bare result or a job envelope."""

    def __init__(
        self,
        result_type: Type[T],
        has_data: Callable[[T], bool],
    ):
        """
        Initializes the decoder.

        Args:
            result_type: The type of a bare result.
            has_data: Tells whether a decoded bare result is real data
                rather than an envelope that happened to fit its shape.
        """
        self.direct = TypeAdapter(result_type)
        self.envelope = TypeAdapter(JobEnvelope[result_type])
        self.has_data = has_data

    def _try_direct(self, body: bytes):
        try:
            return self.direct.validate_json(body)
        except ValidationError:
            return None

    def decode(self, body: bytes) -> JobPoll[T]:
        """
        Decodes one poll body.

        Returns:
            The interpreted poll. A bare result with data is reported as a
            success; an envelope keeps its status, and a failed job carries
            the server's error or message.

        Raises:
            ProtocolError: If the body matches neither shape.
        """

        direct = self._try_direct(body)
        if direct is not None and self.has_data(direct):
            return JobPoll(status=JobStatus.SUCCESS, result=direct)

        try:
            envelope = self.envelope.validate_json(body)
        except ValidationError as e:
            raise ProtocolError(f"failed to decode results: {e}") from e

        status = JobStatus.parse(envelope.status)
        logger.debug(f"Decoded job envelope with status '{envelope.status}'.")

        if status is JobStatus.ERROR:
            return JobPoll(
                status=status,
                error=envelope.error or envelope.message or _FALLBACK_ERROR,
                raw_status=envelope.status,
            )

        return JobPoll(
            status=status,
            result=envelope.results,
            raw_status=envelope.status,
        )


def _batch_has_data(batch: Dict[str, ComparisonResponseModel]) -> bool:
    return bool(batch)


single_result_decoder = ResponseDecoder(
    ComparisonResponseModel, ComparisonResponseModel.has_data
)

batch_result_decoder = ResponseDecoder(
    Dict[str, ComparisonResponseModel], _batch_has_data
)

"""JSON encoding of endpoints and probe results for the key-value store."""

from typing import List, Optional

from pydantic import TypeAdapter, ValidationError

from pingwatch.models.endpoint import Endpoint
from pingwatch.models.probe_result import ProbeResult
from pingwatch.utils.logger import get_logger

logger = get_logger(__name__)

ENDPOINTS_KEY = "pingwatch_endpoints"
RESULTS_KEY = "pingwatch_results"

_endpoints_adapter = TypeAdapter(List[Endpoint])
_results_adapter = TypeAdapter(List[ProbeResult])


def encode_endpoints(endpoints: List[Endpoint]) -> bytes:
    return _endpoints_adapter.dump_json(endpoints)


def encode_results(results: List[ProbeResult]) -> bytes:
    return _results_adapter.dump_json(results)


def _decode(adapter: TypeAdapter, data: Optional[bytes], key: str) -> list:
    if not data:
        return []
    try:
        return adapter.validate_json(data)
    except (ValidationError, ValueError, UnicodeDecodeError) as e:
        logger.warning(
            "Stored record is unreadable, starting empty",
            extra={"key": key, "error": str(e)}
        )
        return []


def decode_endpoints(data: Optional[bytes]) -> List[Endpoint]:
    """Decode endpoints; corrupt or missing data yields an empty list."""
    return _decode(_endpoints_adapter, data, ENDPOINTS_KEY)


def decode_results(data: Optional[bytes]) -> List[ProbeResult]:
    """Decode probe results; corrupt or missing data yields an empty list."""
    return _decode(_results_adapter, data, RESULTS_KEY)

"""
Upstream ingestion component for the soil telemetry pipeline.

Issues one ``getreadings`` request to IrriMAX Live per pipeline run and
returns the CSV body. Failures are reported immediately; there are no retries.
"""

from datetime import datetime
from typing import Optional

import requests

from soilsense.components.base import IngestionComponent
from soilsense.components.timestamps import format_utc_from
from soilsense.config import PipelineConfig
from soilsense.utils import get_logger, ConfigurationError, Deadline, RequestValidationError, UpstreamError


class IrrimaxIngestionComponent(IngestionComponent):
    """Fetches raw readings CSV from the IrriMAX Live API."""

    def __init__(self, config: PipelineConfig):
        """
        Initialize ingestion component.

        Args:
            config: Pipeline configuration carrying the upstream credential
        """
        super().__init__(config)
        self.logger = get_logger(__name__)

        self.stats = {
            "requests_sent": 0,
            "bytes_received": 0,
            "last_status": None,
        }

    def build_params(self, sensor_name: str, since: datetime) -> dict:
        """Query parameters for a readings request."""
        return {
            "cmd": "getreadings",
            "key": self.config.upstream.api_key,
            "name": sensor_name,
            "from": format_utc_from(since),
        }

    def execute(
        self,
        sensor_name: str,
        since: datetime,
        deadline: Optional[Deadline] = None
    ) -> str:
        """
        Fetch readings recorded since ``since`` for one logger.

        Args:
            sensor_name: Logger name at IrriMAX Live
            since: Earliest instant to request
            deadline: Optional caller deadline bounding the HTTP timeout

        Returns:
            Raw CSV text

        Raises:
            RequestValidationError: If no sensor name is given
            ConfigurationError: If no API key is configured
            UpstreamError: On transport failure or a non-success status
        """
        if not sensor_name:
            raise RequestValidationError("Missing ?name=LOGGER_NAME")
        if not self.config.upstream.api_key:
            raise ConfigurationError("Missing IRRIMAX_API_KEY env var")

        params = self.build_params(sensor_name, since)
        timeout = self.config.upstream.timeout_seconds
        if deadline is not None:
            deadline.check("upstream fetch")
            timeout = deadline.bound_timeout(timeout)

        self.logger.info(
            f"Fetching readings for {sensor_name} from {params['from']} "
            f"({self.config.upstream.base_url}, timeout {timeout:.1f}s)"
        )
        self.stats["requests_sent"] += 1

        try:
            resp = requests.get(self.config.upstream.base_url, params=params, timeout=timeout)
        except requests.exceptions.RequestException as e:
            self.logger.error(f"IrriMAX request failed: {type(e).__name__}")
            raise UpstreamError(f"IrriMAX fetch failed: {type(e).__name__}") from e

        self.stats["last_status"] = resp.status_code
        if not resp.ok:
            body = (resp.text or "")[: self.config.upstream.max_error_body_chars]
            self.logger.error(f"IrriMAX fetch failed with status {resp.status_code}")
            raise UpstreamError("IrriMAX fetch failed", status_code=resp.status_code, body=body)

        text = resp.text or ""
        self.stats["bytes_received"] += len(text)
        self.logger.info(f"Received {len(text)} characters of CSV")
        return text

"""
FastAPI application exposing soil probe summaries.

Endpoints:
    GET /soil-moisture: Latest % VWC and window average per requested depth
    GET /soil-temp: Today's current/high/low/average plus 7- and 30-day trends
    GET /health: Health check

The IrriMAX Live key is read from IRRIMAX_API_KEY here, at the edge, and
injected into the pipeline configuration.
"""

import os
from functools import lru_cache
from typing import Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from soilsense import __version__
from soilsense.config import PipelineConfig
from soilsense.main import DEFAULT_CONFIG_PATH, SoilReportPipeline, parse_depth_list
from soilsense.models import PipelineRequest, PipelineResult
from soilsense.utils import ConfigurationError, Deadline, get_logger

logger = get_logger(__name__)

STATUS_CODES = {
    "ok": 200,
    "no_data": 200,
    "invalid_request": 400,
    "configuration_error": 500,
    "upstream_error": 502,
    "cancelled": 504,
    "internal_error": 500,
}

REQUEST_DEADLINE_SECONDS = 25.0

# ---- App setup ----
app = FastAPI(
    title="Soil Probe Summary API",
    description="Soil moisture and temperature summaries from IrriMAX Live loggers",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["Content-Type"],
)


@lru_cache(maxsize=1)
def get_config() -> PipelineConfig:
    """Load configuration once and inject the upstream credential."""
    try:
        config = PipelineConfig.from_yaml(DEFAULT_CONFIG_PATH) if DEFAULT_CONFIG_PATH.exists() else PipelineConfig()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration in {DEFAULT_CONFIG_PATH}: {e}") from e
    return config.with_api_key(os.environ.get("IRRIMAX_API_KEY") or config.upstream.api_key)


def get_pipeline(config: PipelineConfig = Depends(get_config)) -> SoilReportPipeline:
    """A fresh pipeline per request; components keep per-run stats."""
    return SoilReportPipeline.with_default_components(config)


def to_response(result: PipelineResult) -> JSONResponse:
    """Map a pipeline result to an HTTP response."""
    status_code = STATUS_CODES[result.status]

    if result.status == "ok":
        body = result.report.model_dump(mode="json", exclude={"kind"})
    elif result.status == "no_data":
        body = {"note": result.note}
        if result.header is not None:
            body["header"] = result.header
    else:
        body = {"error": result.error}
        if result.status == "upstream_error":
            body["status"] = result.upstream_status
            body["body"] = result.upstream_body

    return JSONResponse(status_code=status_code, content=body)


@app.exception_handler(ConfigurationError)
def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    """Configuration failures raised while resolving dependencies."""
    logger.error(f"Configuration error on {request.url.path}: {exc}")
    return JSONResponse(status_code=STATUS_CODES["configuration_error"], content={"error": str(exc)})


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}


@app.get("/soil-moisture")
def soil_moisture(
    name: Optional[str] = Query(None, description="Logger name"),
    depths: Optional[str] = Query(None, description="Comma-separated depths in inches, e.g. 6,22"),
    days: Optional[int] = Query(None, description="Lookback window in days"),
    tz: Optional[str] = Query(None, description="IANA time zone of the site"),
    peek: Optional[str] = Query(None, description="1 to dump header, columns and recent rows"),
    pipeline: SoilReportPipeline = Depends(get_pipeline),
):
    """Latest moisture and lookback-window average for each requested depth."""
    request = PipelineRequest(
        sensor_name=name,
        channel="moisture",
        timezone=tz,
        depths=parse_depth_list(depths),
        days=days,
        peek=peek == "1",
    )
    result = pipeline.execute(request, deadline=Deadline(timeout_seconds=REQUEST_DEADLINE_SECONDS))
    return to_response(result)


@app.get("/soil-temp")
def soil_temp(
    name: Optional[str] = Query(None, description="Logger name"),
    depth: Optional[str] = Query(None, description="Depth in inches"),
    days: Optional[int] = Query(None, description="Lookback window in days"),
    tz: Optional[str] = Query(None, description="IANA time zone of the site"),
    pipeline: SoilReportPipeline = Depends(get_pipeline),
):
    """Today's soil temperature statistics at the column nearest the requested depth."""
    request = PipelineRequest(
        sensor_name=name,
        channel="temperature",
        timezone=tz,
        depths=parse_depth_list(depth),
        days=days,
    )
    result = pipeline.execute(request, deadline=Deadline(timeout_seconds=REQUEST_DEADLINE_SECONDS))
    return to_response(result)

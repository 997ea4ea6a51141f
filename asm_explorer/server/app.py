"""FastAPI application exposing the correlator over HTTP.

WHY: Editor plugins written in other languages (and web viewers) want
the correlation without embedding Python. They already hold the listing
and the buffer text, so one request-response call is enough.

HOW: POST /correlations runs the correlator on the posted listing and
source and returns the entries. POST /correlations/render/{format_key}
runs a registered formatter and returns the rendered file. /formats and
/health are for discovery and liveness.

RULES:
- Correlation is synchronous and stateless per request; no job store
- A malformed listing is a 422 with the parser's message
- An unknown format or dialect is a 400
- An empty correlation is a normal 200 with empty=True
"""

from __future__ import annotations

import logging
from typing import List

from fastapi import FastAPI, HTTPException
from fastapi.responses import Response

from asm_explorer import __version__
from asm_explorer.config import ASME_HOST, ASME_PORT, load_palette
from asm_explorer.core.assembler import correlate
from asm_explorer.core.errors import MalformedDirectiveError
from asm_explorer.core.grammar import get_grammar
from asm_explorer.core.ir import CorrelationResult
from asm_explorer.formatters import FORMATTERS
from asm_explorer.server.models import (
    CorrelationEntryModel,
    CorrelationRequest,
    CorrelationResponse,
    ErrorResponse,
    FormatInfo,
    HealthResponse,
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Assembly Explorer API",
    description=(
        "Correlate compiler assembly listings with their C/C++ source. "
        "Post a listing and its source text, get back one assembly block "
        "per source line, or a rendered view."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run_correlation(request: CorrelationRequest) -> CorrelationResult:
    """Correlate a request, mapping core errors to HTTP errors."""
    try:
        grammar = get_grammar(request.dialect)
    except KeyError as exc:
        raise HTTPException(status_code=400, detail=exc.args[0])

    try:
        return correlate(
            request.listing_text,
            request.target_file_path,
            request.source_text,
            request.source_filename,
            grammar=grammar,
            palette=load_palette(),
        )
    except MalformedDirectiveError as exc:
        logger.info("Rejected malformed listing for %s: %s", request.source_filename, exc)
        raise HTTPException(status_code=422, detail=str(exc))


def _result_to_response(result: CorrelationResult) -> CorrelationResponse:
    return CorrelationResponse(
        source_file=result.source_filename,
        empty=result.is_empty,
        entries=[
            CorrelationEntryModel(
                line=entry.source_line,
                code=entry.source_text,
                assembly=entry.assembly_text,
                color=entry.display_color,
            )
            for entry in result.entries
        ],
    )


# ---------------------------------------------------------------------------
# Endpoints: Correlations
# ---------------------------------------------------------------------------


@app.post(
    "/correlations",
    response_model=CorrelationResponse,
    tags=["correlations"],
    summary="Correlate a listing with its source",
    description=(
        "Parse the posted assembly listing and return, for each source line "
        "that produced code, the instructions generated for it."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Unknown listing dialect"},
        422: {"model": ErrorResponse, "description": "Malformed listing"},
    },
)
async def create_correlation(request: CorrelationRequest) -> CorrelationResponse:
    return _result_to_response(_run_correlation(request))


@app.post(
    "/correlations/render/{format_key}",
    tags=["correlations"],
    summary="Correlate and render with one output format",
    description=(
        "Run the correlation and return the output of the named formatter "
        "(see GET /formats) as a file."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Unknown format or dialect"},
        422: {"model": ErrorResponse, "description": "Malformed listing"},
    },
)
async def render_correlation(format_key: str, request: CorrelationRequest) -> Response:
    if format_key not in FORMATTERS:
        available = ", ".join(sorted(FORMATTERS.keys()))
        raise HTTPException(
            status_code=400,
            detail="Unknown output format '{}'. Available: {}".format(format_key, available),
        )

    result = _run_correlation(request)
    output = FORMATTERS[format_key]().format(result)[0]
    stem = request.source_filename.rsplit(".", 1)[0] or "source"
    filename = "{}{}".format(stem, output.suffix)
    return Response(
        content=output.content,
        media_type=output.media_type,
        headers={"Content-Disposition": 'attachment; filename="{}"'.format(filename)},
    )


# ---------------------------------------------------------------------------
# Endpoints: Formats
# ---------------------------------------------------------------------------


@app.get(
    "/formats",
    response_model=List[FormatInfo],
    tags=["formats"],
    summary="List available output formats",
)
async def list_formats() -> List[FormatInfo]:
    result = []
    for key, formatter_cls in sorted(FORMATTERS.items()):
        formatter = formatter_cls()
        result.append(FormatInfo(
            key=key,
            name=formatter.name,
            suffix=formatter.suffix,
            media_type=formatter.media_type,
        ))
    return result


# ---------------------------------------------------------------------------
# Endpoints: Health
# ---------------------------------------------------------------------------


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


def run_api():
    """Entry point for the asm-explorer-api console script."""
    import uvicorn
    uvicorn.run(app, host=ASME_HOST, port=ASME_PORT)

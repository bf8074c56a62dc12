"""FastAPI router exposing the assessment as a callable tool."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, AsyncIterator

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, Field

from firedamage.assessment.pipeline import AssessmentPipeline
from firedamage.core.types import ToolDefinition
from firedamage.gis.errors import AssessmentError
from firedamage.gis.models import StructuredAddress

logger = logging.getLogger(__name__)

router = APIRouter()

TOOL_NAME = "fetch_fire_damage_assessment_for_address"
TOOL_DESCRIPTION = (
    "Fetches the CAL FIRE DINS fire damage assessment for a given address in the "
    "Los Angeles region for the January 2025 Palisades or Eaton fires. Returns the "
    "evacuation zone, the parcel APN, the damage assessments with any publicly "
    "accessible photographs as attachments, and the coordinates of the address."
)

INTERNAL_ERROR = {"code": -32603, "kind": "InternalError", "message": "Internal server error"}


class AssessmentRequest(BaseModel):
    address: str | StructuredAddress = Field(
        description="Full address as a single string, or street/city/state/zip parts",
    )


def tool_definitions(version: str) -> list[ToolDefinition]:
    return [
        ToolDefinition(
            name=TOOL_NAME,
            description=TOOL_DESCRIPTION,
            version=version,
            input_schema=AssessmentRequest.model_json_schema(),
        )
    ]


def _pipeline(request: Request, name: str) -> AssessmentPipeline:
    if name != TOOL_NAME:
        raise HTTPException(status_code=404, detail=f"Unknown tool: {name!r}")
    return request.app.state.pipeline


@router.get("/api/tools")
async def list_tools(request: Request) -> list[dict[str, Any]]:
    """List the callable tools with their input schemas."""
    version = request.app.state.settings.version
    return [tool.model_dump() for tool in tool_definitions(version)]


@router.post("/api/tools/{name}")
async def call_tool(name: str, body: AssessmentRequest, request: Request) -> JSONResponse:
    """Run an assessment and return it, or a structured error."""
    pipeline = _pipeline(request, name)
    try:
        assessment = await pipeline.assess(body.address)
    except AssessmentError as exc:
        return JSONResponse(status_code=exc.http_status, content={"error": exc.to_dict()})
    except Exception:
        logger.exception("Error handling tool request")
        return JSONResponse(status_code=500, content={"error": INTERNAL_ERROR})
    return JSONResponse(content=assessment.to_dict())


@router.post("/api/tools/{name}/stream")
async def call_tool_streaming(name: str, body: AssessmentRequest, request: Request) -> StreamingResponse:
    """Run an assessment, streaming progress events as NDJSON lines."""
    pipeline = _pipeline(request, name)
    return StreamingResponse(
        _stream_events(pipeline, body.address),
        media_type="application/x-ndjson",
    )


async def _stream_events(
    pipeline: AssessmentPipeline,
    address: str | StructuredAddress,
) -> AsyncIterator[str]:
    queue: asyncio.Queue[dict[str, Any] | None] = asyncio.Queue()

    async def sink(progress: int, total: int, message: str | None) -> None:
        await queue.put({"type": "progress", "progress": progress, "total": total, "message": message})

    async def run() -> None:
        try:
            assessment = await pipeline.assess(address, progress=sink)
            await queue.put({"type": "result", "assessment": assessment.to_dict()})
        except AssessmentError as exc:
            await queue.put({"type": "error", "error": exc.to_dict()})
        except Exception:
            logger.exception("Error handling streaming tool request")
            await queue.put({"type": "error", "error": INTERNAL_ERROR})
        finally:
            await queue.put(None)

    task = asyncio.create_task(run())
    try:
        while True:
            event = await queue.get()
            if event is None:
                break
            yield json.dumps(event) + "\n"
    finally:
        if not task.done():
            task.cancel()

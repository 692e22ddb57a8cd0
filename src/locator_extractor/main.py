"""FastAPI application exposing the capture session over HTTP and WebSocket."""

import json
import logging
import uuid
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional, Union

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, ValidationError

from . import __version__
from .config import settings
from .exceptions import (
    ConnectionLimitError,
    LaunchError,
    LocatorExtractorError,
    NoActiveSessionError,
    SessionActiveError,
)
from .logging_config import setup_logging
from .models.messages import DoneMessage, ErrorMessage, ScanCommand, StartCommand
from .session_controller import SessionController
from .websocket import ConnectionManager

# Setup logging
setup_logging(level=settings.LOG_LEVEL, debug=settings.DEBUG)
logger = logging.getLogger(__name__)

# Global managers (initialized in lifespan)
connection_manager: ConnectionManager
controller: SessionController


class ScanRequest(BaseModel):
    filter: Optional[Union[str, List[str]]] = None
    include_hidden: Optional[bool] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown."""
    logger.info(f"Starting {settings.PROJECT_NAME}...")

    global connection_manager, controller

    connection_manager = ConnectionManager(max_connections=settings.MAX_CONNECTIONS)
    controller = SessionController(log_sink=connection_manager.broadcast_log)

    logger.info(f"{settings.PROJECT_NAME} started successfully")

    yield

    logger.info("Shutting down gracefully...")
    await controller.stop()
    logger.info("Shutdown complete")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=__version__,
    lifespan=lifespan,
)


def _records_summary(records) -> Dict[str, Any]:
    return {
        "count": len(records),
        "records": [record.to_output() for record in records],
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "ok",
        "service": settings.PROJECT_NAME,
        "session_state": controller.state.value,
        "active_connections": connection_manager.get_connection_count(),
    }


@app.get("/api/v1/session")
async def get_session():
    """Current session state and capture counts."""
    return controller.status()


@app.post("/api/v1/session/start")
async def start_session(command: StartCommand):
    """Launch a browser session (409 while another one is active)."""
    try:
        await controller.launch(command, replace_existing=command.replace_existing)
    except SessionActiveError as e:
        raise HTTPException(status_code=409, detail=e.message)
    except LaunchError as e:
        raise HTTPException(status_code=502, detail=f"{e.message}: {e.detail}")
    return controller.status()


@app.post("/api/v1/session/scan")
async def scan_session(request: ScanRequest):
    """Run a triggered scan on the most recently opened page."""
    try:
        records = await controller.scan(request.filter, request.include_hidden)
    except NoActiveSessionError as e:
        raise HTTPException(status_code=409, detail=e.message)
    return _records_summary(records)


@app.post("/api/v1/session/snapshot")
async def snapshot_session(request: ScanRequest):
    """Capture every element of the current page."""
    try:
        records = await controller.snapshot(request.filter)
    except NoActiveSessionError as e:
        raise HTTPException(status_code=409, detail=e.message)
    return _records_summary(records)


@app.post("/api/v1/session/stop")
async def stop_session():
    """Save results (if needed) and close the browser."""
    result = await controller.stop()
    return {
        "state": controller.state.value,
        "saved": result.model_dump() if result else None,
    }


async def _handle_command(client_id: str, data: Dict[str, Any]) -> None:
    msg_type = data.get("type")

    if msg_type == "start":
        command = StartCommand(**data)
        await controller.launch(command, replace_existing=command.replace_existing)
        await connection_manager.send_message(
            client_id, DoneMessage(message="START_DONE").model_dump()
        )

    elif msg_type == "scan":
        scan = ScanCommand(**data)
        records = await controller.scan(scan.filter, scan.include_hidden)
        if scan.save and records:
            await controller.save_results()
        await connection_manager.send_message(
            client_id, DoneMessage(message=f"SCAN_DONE:{len(records)}").model_dump()
        )

    elif msg_type == "stop":
        await controller.stop()
        await connection_manager.send_message(
            client_id, DoneMessage(message="STOP_DONE").model_dump()
        )

    else:
        await connection_manager.send_message(
            client_id,
            ErrorMessage(
                code="unknown_command", message=f"Unknown message type: {msg_type}"
            ).model_dump(),
        )


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """Dashboard WebSocket: streams log events and accepts session commands."""
    client_id = str(uuid.uuid4())

    try:
        await connection_manager.connect(client_id, websocket)
    except ConnectionLimitError:
        return

    try:
        await connection_manager.send_message(
            client_id, {"type": "status", **controller.status()}
        )

        while True:
            data = await websocket.receive_json()
            logger.debug(
                f"[WS IN] {client_id[:8]}... | {data.get('type', 'unknown')} | "
                f"{json.dumps(data)[:200]}"
            )

            try:
                await _handle_command(client_id, data)
            except ValidationError as e:
                await connection_manager.send_message(
                    client_id,
                    ErrorMessage(
                        code="invalid_request",
                        message="Invalid request format",
                        detail=str(e),
                    ).model_dump(),
                )
            except LocatorExtractorError as e:
                await connection_manager.send_message(
                    client_id,
                    ErrorMessage(
                        code=e.code, message=e.message, detail=e.detail or None
                    ).model_dump(),
                )

    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected: {client_id}")

    except Exception as e:
        logger.error(f"WebSocket error: {e}", exc_info=True)
        await connection_manager.send_message(
            client_id,
            ErrorMessage(code="internal", message=str(e)).model_dump(),
        )

    finally:
        connection_manager.disconnect(client_id)

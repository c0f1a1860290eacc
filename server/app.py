"""
FastAPI server for the bakery IVR.

Endpoints:
- GET /health: Health check
- GET /metrics: JSON metrics
- POST /incomingSms: Reply to an inbound text
- POST /incomingCall: Greeting
- POST /mainMenuPrompt: Collect a menu digit
- POST /mainMenu: Act on the collected digit
- POST /transfer: Operator transfer notice
- POST /endCall: Goodbye and hang up
"""

import asyncio
import sys

# uvloop is Linux/macOS only
try:
    import uvloop
    asyncio.set_event_loop_policy(uvloop.EventLoopPolicy())
except ImportError:
    pass

import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Dict, Any, Optional
import logging

from fastapi import Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException
import structlog
import uvicorn

from src.ivr.config import get_config, init_config, ConfigError
from src.ivr.events import CallEvent, SmsEvent
from src.ivr.menu import MenuFlow, MenuState
from src.ivr.messaging import FreeClimbMessenger, Messenger
from src.ivr.percl import CommandDocument
from src.ivr.retry import RetryStore

SMS_WELCOME = "Welcome to Seneca-Vail Presentation"


def configure_logging(log_level: str = "INFO") -> None:
    """Configure structured logging."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if log_level != "DEBUG" else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

logger = structlog.get_logger(__name__)


@dataclass
class ServerMetrics:
    """Server-wide metrics."""
    start_time: float = field(default_factory=time.time)
    total_calls: int = 0
    sms_received: int = 0
    menu_decisions: int = 0
    invalid_inputs: int = 0
    retry_limits_reached: int = 0
    calls_ended: int = 0
    errors: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uptime_seconds": round(time.time() - self.start_time, 2),
            "total_calls": self.total_calls,
            "sms_received": self.sms_received,
            "menu_decisions": self.menu_decisions,
            "invalid_inputs": self.invalid_inputs,
            "retry_limits_reached": self.retry_limits_reached,
            "calls_ended": self.calls_ended,
            "errors": self.errors,
        }


# Global metrics
metrics = ServerMetrics()

# Menu retry counters for every call handled by this process
retry_store = RetryStore()

_messenger: Optional[Messenger] = None


def get_flow() -> MenuFlow:
    return MenuFlow(get_config().host_url, retry_store)


def get_messenger() -> Messenger:
    global _messenger
    if _messenger is None:
        _messenger = FreeClimbMessenger(get_config())
    return _messenger


async def read_body(request: Request) -> Dict[str, Any]:
    """
    Read a webhook body sent as JSON or as a form.

    Anything unreadable is treated as an empty body.
    """
    content_type = request.headers.get("content-type", "")
    if "application/x-www-form-urlencoded" in content_type or "multipart/form-data" in content_type:
        try:
            form = await request.form()
        except (StarletteHTTPException, MultiPartException) as e:
            logger.warning("Ignoring unparseable webhook form", path=request.url.path, error=str(e))
            return {}
        return dict(form)

    raw = await request.body()
    if not raw:
        return {}
    try:
        data = await request.json()
    except ValueError:
        logger.warning("Ignoring unparseable webhook body", path=request.url.path)
        return {}
    return data if isinstance(data, dict) else {}


def percl_response(document: CommandDocument) -> Response:
    return Response(content=document.encode(), media_type="application/json")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting bakery IVR server...")

    try:
        config = init_config()
        configure_logging(config.log_level)

        logger.info(
            "Server ready",
            port=config.port,
            host_url=config.host_url,
        )

    except ConfigError as e:
        logger.error("Configuration error", error=str(e))
        sys.exit(1)

    yield

    logger.info("Shutting down server...")
    if _messenger is not None:
        await _messenger.close()


app = FastAPI(
    title="Bakery IVR",
    description="FreeClimb webhook handler for the bakery phone menu",
    version="1.0.0",
    lifespan=lifespan,
)


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(
        content={
            "status": "healthy",
            "timestamp": time.time(),
            "active_retries": len(retry_store),
        }
    )


@app.get("/metrics")
async def get_metrics() -> JSONResponse:
    """Metrics endpoint."""
    return JSONResponse(content=metrics.to_dict())


@app.post("/incomingSms")
async def incoming_sms(request: Request, messenger: Messenger = Depends(get_messenger)) -> Response:
    """
    Reply to an inbound text from the number it was sent to.

    Send failures are not caught here; they surface as a 500.
    """
    event = SmsEvent.from_body(await read_body(request))
    metrics.sms_received += 1
    logger.info("Incoming SMS", from_number=event.from_number, to_number=event.to_number)

    await messenger.send_sms(event.to_number, event.from_number, SMS_WELCOME)
    return Response(status_code=200)


@app.post("/incomingCall")
async def incoming_call(request: Request, flow: MenuFlow = Depends(get_flow)) -> Response:
    event = CallEvent.from_body(await read_body(request))
    metrics.total_calls += 1
    logger.info("Incoming call", call_id=event.call_id, from_number=event.from_number)
    return percl_response(flow.greeting())


@app.post("/mainMenuPrompt")
async def main_menu_prompt(flow: MenuFlow = Depends(get_flow)) -> Response:
    return percl_response(flow.menu_prompt())


@app.post("/mainMenu")
async def main_menu(request: Request, flow: MenuFlow = Depends(get_flow)) -> Response:
    """Route the caller based on the digit they pressed."""
    event = CallEvent.from_body(await read_body(request))
    document, next_state = flow.menu_decision(event.digits, event.call_id)

    metrics.menu_decisions += 1
    if next_state == MenuState.RETRY_PROMPT:
        metrics.invalid_inputs += 1
    elif next_state == MenuState.END_CALL:
        metrics.retry_limits_reached += 1

    return percl_response(document)


@app.post("/transfer")
async def transfer(flow: MenuFlow = Depends(get_flow)) -> Response:
    return percl_response(flow.transfer())


@app.post("/endCall")
async def end_call(request: Request, flow: MenuFlow = Depends(get_flow)) -> Response:
    event = CallEvent.from_body(await read_body(request))
    metrics.calls_ended += 1
    logger.info("Ending call", call_id=event.call_id)
    return percl_response(flow.end_call(event.call_id))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler."""
    logger.error(
        "Unhandled exception",
        path=request.url.path,
        error=str(exc),
    )
    metrics.errors += 1

    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error"},
    )


def main() -> None:
    """Run the server."""
    config = get_config()
    configure_logging(config.log_level)

    logger.info("Starting server", port=config.port)

    uvicorn.run(
        "server.app:app",
        host="0.0.0.0",
        port=config.port,
        log_level=config.log_level.lower(),
        reload=False,
    )


if __name__ == "__main__":
    main()

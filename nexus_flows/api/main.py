"""
FastAPI main application
REST API endpoints for Nexus Flows
"""

from fastapi import FastAPI, HTTPException, Depends, Header, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from contextlib import asynccontextmanager
from typing import Optional
import os
import logging
import uuid

from ..database import get_db_session
from ..core.events import EventBus
from ..core.exceptions import GraphValidationError, QueueFullError
from ..core.logging_config import setup_logging, set_request_id, clear_request_id
from ..core.metrics import MetricsCollector
from ..core.repository import FlowRepository
from ..workers.queue import ExecutionQueue, LocalExecutionQueue, get_execution_queue
from .schemas import (
    FlowSaveRequest, FlowSaveResponse, FlowResponse, FlowListResponse, FlowSummary,
    ExecutionRequest, ExecutionQueuedResponse, ExecutionResponse, ExecutionListResponse,
    EventRequest, EventResponse,
)

# ============================================================================
# LOGGING CONFIGURATION
# ============================================================================

# JSON logs in production (JSON_LOGS=true), standard logs in development
setup_logging(
    level=os.getenv("LOG_LEVEL", "INFO"),
    json_logs=os.getenv("JSON_LOGS", "false").lower() == "true",
    log_file=os.getenv("LOG_FILE", None)
)

logger = logging.getLogger(__name__)

# ============================================================================
# FASTAPI APP CONFIGURATION
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # In-process executions finish (and reach a terminal status) before the loop goes away
    override = app.dependency_overrides.get(get_queue)
    queue = override() if override else _execution_queue
    if isinstance(queue, LocalExecutionQueue) and queue.in_flight:
        logger.info(f"Shutdown: waiting for {queue.in_flight} executions in flight")
        await queue.drain()


app = FastAPI(
    title="Nexus Flows API",
    description="""
# Nexus Flows

Workflow automation engine: flows are directed graphs of trigger,
condition, action and AI nodes, executed against a payload.

## Execution

1. **POST /flows/{id}/execute** - Queue an execution (HTTP 202, status "running")
2. **GET /flows/{id}/executions** - Follow the outcome in the execution history

Every request is scoped to the organization given in the
`X-Organization-Id` header.
    """,
    version="0.1.0",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "health", "description": "Health checks and system status"},
        {"name": "flows", "description": "Flow definitions (nodes + edges)"},
        {"name": "execution", "description": "Fire-and-forget flow execution"},
        {"name": "executions", "description": "Execution history and logs"},
        {"name": "events", "description": "System events that start subscribed flows"},
    ]
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# DEPENDENCIES
# ============================================================================

def get_db():
    """Dependency for database session"""
    db = get_db_session()
    try:
        yield db
    finally:
        db.close()


def get_organization_id(x_organization_id: Optional[str] = Header(None)) -> str:
    """Organization of the caller (authentication happens upstream)"""
    if not x_organization_id:
        raise HTTPException(status_code=400, detail="X-Organization-Id header is required")
    return x_organization_id


_execution_queue: Optional[ExecutionQueue] = None


def get_queue() -> ExecutionQueue:
    """Process-wide execution queue (FLOW_QUEUE_BACKEND)"""
    global _execution_queue
    if _execution_queue is None:
        _execution_queue = get_execution_queue()
    return _execution_queue


# ============================================================================
# MIDDLEWARE - Request ID Tracking
# ============================================================================

@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """
    Middleware to add request ID to all requests.

    - Generates UUID for each request (or reuses X-Request-ID)
    - Sets request ID in logging context
    - Adds X-Request-ID header to response
    """
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    set_request_id(request_id)

    logger.info(
        f"{request.method} {request.url.path}",
        extra={
            "method": request.method,
            "path": request.url.path,
            "client_ip": request.client.host if request.client else None,
        }
    )

    try:
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        logger.info(
            f"Response {response.status_code}",
            extra={"status_code": response.status_code}
        )
        return response

    except Exception as e:
        logger.exception("Unhandled exception in request", extra={"error": str(e)})
        raise

    finally:
        clear_request_id()


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================

@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc):
    """Custom HTTP exception handler for better error responses"""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.detail,
            "status_code": exc.status_code
        }
    )


# ============================================================================
# ROOT & HEALTH
# ============================================================================

@app.get("/", tags=["health"], summary="API root")
def root():
    """Root endpoint - Returns API info"""
    return {
        "name": "Nexus Flows API",
        "version": "0.1.0",
        "status": "healthy",
        "docs": "/docs",
    }


@app.get("/health", tags=["health"], summary="Health check (lightweight)")
def health_check():
    """Lightweight health check - just confirms API is alive"""
    return {
        "status": "healthy",
        "service": "Nexus Flows API",
        "version": "0.1.0",
        "queue_backend": os.getenv("FLOW_QUEUE_BACKEND", "local"),
    }


@app.get(
    "/metrics",
    tags=["health"],
    summary="System metrics",
    description="""
    Execution statistics (last 24 hours), error rate (last hour), flow
    counts by status and database health. With X-Organization-Id the
    metrics are restricted to that organization.
    """
)
def get_metrics(
    x_organization_id: Optional[str] = Header(None),
    db: Session = Depends(get_db),
):
    try:
        collector = MetricsCollector(db, organization_id=x_organization_id)
        metrics = collector.get_all_metrics()

        logger.info(
            "Metrics collected",
            extra={
                "success_rate": metrics["executions"]["success_rate"],
                "error_rate": metrics["error_rate"]["error_rate"],
            }
        )
        return metrics

    except Exception as e:
        logger.exception("Failed to collect metrics")
        raise HTTPException(status_code=500, detail=f"Failed to collect metrics: {str(e)}")


# ============================================================================
# FLOWS
# ============================================================================

@app.get("/flows", response_model=FlowListResponse, tags=["flows"], summary="List flows")
def list_flows(
    organization_id: str = Depends(get_organization_id),
    db: Session = Depends(get_db),
):
    """Flows of the organization, most recently updated first"""
    flows = FlowRepository(db).list_flows(organization_id)
    return FlowListResponse(flows=[FlowSummary.model_validate(f) for f in flows], total=len(flows))


@app.post("/flows", response_model=FlowSaveResponse, tags=["flows"], summary="Create or replace a flow")
def save_flow(
    request: FlowSaveRequest,
    organization_id: str = Depends(get_organization_id),
    db: Session = Depends(get_db),
):
    """
    Save a flow definition. The submitted nodes and edges replace the
    stored graph entirely.
    """
    try:
        flow_id = FlowRepository(db).save_flow(
            organization_id,
            name=request.name,
            nodes=[n.model_dump(by_alias=True) for n in request.nodes],
            edges=[e.model_dump(by_alias=True) for e in request.edges],
            flow_id=request.id,
            description=request.description,
            status=request.status,
            version=request.version,
        )
    except GraphValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)

    return FlowSaveResponse(flow_id=flow_id)


@app.get("/flows/{flow_id}", response_model=FlowResponse, tags=["flows"], summary="Get flow with graph")
def get_flow(
    flow_id: str,
    organization_id: str = Depends(get_organization_id),
    db: Session = Depends(get_db),
):
    flow = FlowRepository(db).load_flow_with_graph(flow_id, organization_id)
    if not flow:
        raise HTTPException(status_code=404, detail=f"Flow {flow_id} not found")
    return FlowResponse.from_model(flow)


@app.post("/flows/{flow_id}/archive", response_model=FlowResponse, tags=["flows"], summary="Archive flow")
def archive_flow(
    flow_id: str,
    organization_id: str = Depends(get_organization_id),
    db: Session = Depends(get_db),
):
    flow = FlowRepository(db).archive_flow(flow_id, organization_id)
    if not flow:
        raise HTTPException(status_code=404, detail=f"Flow {flow_id} not found")
    return FlowResponse.from_model(flow)


# ============================================================================
# EXECUTION
# ============================================================================

@app.post(
    "/flows/{flow_id}/execute",
    status_code=202,
    response_model=ExecutionQueuedResponse,
    tags=["execution"],
    summary="Execute flow (fire-and-forget)",
    description="""
    Queues the execution and answers immediately with status "running".
    The outcome (completed, failed, simulated) is only visible in
    GET /flows/{flow_id}/executions.
    """
)
async def execute_flow(
    flow_id: str,
    execution_request: Optional[ExecutionRequest] = None,
    organization_id: str = Depends(get_organization_id),
    db: Session = Depends(get_db),
    queue: ExecutionQueue = Depends(get_queue),
):
    execution_request = execution_request or ExecutionRequest()

    # Sync SQLAlchemy: keep it off the event loop that runs the queue
    flow = await run_in_threadpool(FlowRepository(db).load_flow_with_graph, flow_id, organization_id)
    if not flow:
        raise HTTPException(status_code=404, detail=f"Flow {flow_id} not found")

    try:
        task_id = queue.enqueue(
            flow_id,
            organization_id,
            execution_request.payload,
            execution_request.is_simulated,
        )
    except QueueFullError as e:
        raise HTTPException(status_code=429, detail=e.message)

    return ExecutionQueuedResponse(status="running", task_id=task_id, flow_id=flow_id)


@app.get(
    "/flows/{flow_id}/executions",
    response_model=ExecutionListResponse,
    tags=["executions"],
    summary="Recent executions of a flow",
)
def list_executions(
    flow_id: str,
    organization_id: str = Depends(get_organization_id),
    db: Session = Depends(get_db),
):
    """The 20 most recent executions, newest first"""
    executions = FlowRepository(db).list_executions(flow_id, organization_id)
    return ExecutionListResponse(
        executions=[ExecutionResponse.model_validate(e) for e in executions],
        total=len(executions),
    )


@app.get(
    "/executions/{execution_id}",
    response_model=ExecutionResponse,
    tags=["executions"],
    summary="Get execution",
)
def get_execution(
    execution_id: str,
    organization_id: str = Depends(get_organization_id),
    db: Session = Depends(get_db),
):
    execution = FlowRepository(db).get_execution(execution_id, organization_id)
    if not execution:
        raise HTTPException(status_code=404, detail=f"Execution {execution_id} not found")
    return ExecutionResponse.model_validate(execution)


# ============================================================================
# EVENTS
# ============================================================================

@app.post("/events", response_model=EventResponse, tags=["events"], summary="Emit a system event")
async def emit_event(
    event_request: EventRequest,
    organization_id: str = Depends(get_organization_id),
    db: Session = Depends(get_db),
    queue: ExecutionQueue = Depends(get_queue),
):
    """Start every active flow of the organization whose trigger listens to the event"""
    bus = EventBus(FlowRepository(db), queue)
    flows = await run_in_threadpool(bus.subscribed_flows, organization_id, event_request.event)
    task_ids = bus.start(flows, organization_id, event_request.event, event_request.payload)
    return EventResponse(event=event_request.event, triggered=len(task_ids), task_ids=task_ids)

"""
Pydantic schemas for API request/response validation

JSON uses camelCase (organizationId, sourceNodeId, startedAt, ...);
Python attributes stay snake_case.
"""

from pydantic import AliasChoices, BaseModel, Field
from pydantic.alias_generators import to_camel
from typing import Optional, Dict, Any, List, Literal
from datetime import datetime


class CamelModel(BaseModel):

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


# ============================================================================
# FLOW SCHEMAS
# ============================================================================

class FlowNodeSchema(CamelModel):
    id: str = Field(..., min_length=1, description="Node id, unique inside the flow")
    type: str = Field(..., min_length=1, description="trigger, action, condition, ai or webhook")
    config: Dict[str, Any] = Field(default_factory=dict)
    position: Optional[Dict[str, Any]] = None
    metadata: Optional[Dict[str, Any]] = None

    @classmethod
    def from_model(cls, node) -> "FlowNodeSchema":
        return cls(
            id=node.id,
            type=node.type,
            config=node.config or {},
            position=node.position,
            metadata=node.node_metadata,
        )


class FlowEdgeSchema(CamelModel):
    id: str = Field(..., min_length=1)
    source_node_id: str = Field(..., validation_alias=AliasChoices("sourceNodeId", "source_node_id", "source"))
    target_node_id: str = Field(..., validation_alias=AliasChoices("targetNodeId", "target_node_id", "target"))
    condition_label: Optional[str] = None


class FlowSaveRequest(CamelModel):
    """Create (no id) or fully replace (id) a flow"""
    id: Optional[str] = None
    name: str = Field(..., min_length=1, max_length=255, description="Flow name")
    description: Optional[str] = None
    status: Optional[Literal["draft", "active", "archived"]] = None
    version: Optional[str] = None
    nodes: List[FlowNodeSchema] = Field(default_factory=list)
    edges: List[FlowEdgeSchema] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Low stock alert",
                "status": "active",
                "nodes": [
                    {"id": "t1", "type": "trigger", "config": {"eventType": "inventory.low"}},
                    {"id": "c1", "type": "condition", "config": {"field": "qty", "operator": "lt", "value": 5}},
                    {"id": "a1", "type": "action", "config": {
                        "action": "NOTIFY_USER",
                        "params": {"userId": "u1", "title": "Restock", "message": "Stock is low"}
                    }},
                ],
                "edges": [
                    {"id": "e1", "sourceNodeId": "t1", "targetNodeId": "c1"},
                    {"id": "e2", "sourceNodeId": "c1", "targetNodeId": "a1", "conditionLabel": "true"},
                ],
            }
        }


class FlowSaveResponse(CamelModel):
    flow_id: str


class FlowSummary(CamelModel):
    id: str
    organization_id: str
    name: str
    description: Optional[str] = None
    version: str
    status: str
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class FlowResponse(FlowSummary):
    nodes: List[FlowNodeSchema]
    edges: List[FlowEdgeSchema]

    @classmethod
    def from_model(cls, flow) -> "FlowResponse":
        summary = FlowSummary.model_validate(flow)
        return cls(
            **summary.model_dump(),
            nodes=[FlowNodeSchema.from_model(n) for n in flow.nodes],
            edges=[FlowEdgeSchema.model_validate(e) for e in flow.edges],
        )


class FlowListResponse(CamelModel):
    flows: List[FlowSummary]
    total: int


# ============================================================================
# EXECUTION SCHEMAS
# ============================================================================

class ExecutionRequest(CamelModel):
    payload: Dict[str, Any] = Field(default_factory=dict, description="Initial context")
    is_simulated: bool = Field(False, description="Dry run: actions are logged, not performed")

    class Config:
        json_schema_extra = {
            "example": {
                "payload": {"qty": 150, "dealId": "d-42"},
                "isSimulated": False,
            }
        }


class ExecutionQueuedResponse(CamelModel):
    status: str = "running"
    task_id: str
    flow_id: str


class LogEntrySchema(CamelModel):
    timestamp: str
    message: str
    type: str


class ExecutionResponse(CamelModel):
    id: str
    flow_id: str
    organization_id: str
    status: str
    started_at: datetime
    completed_at: Optional[datetime] = None
    logs: List[LogEntrySchema] = Field(default_factory=list)
    context: Dict[str, Any] = Field(default_factory=dict)


class ExecutionListResponse(CamelModel):
    executions: List[ExecutionResponse]
    total: int


# ============================================================================
# EVENT SCHEMAS
# ============================================================================

class EventRequest(CamelModel):
    event: str = Field(..., min_length=1, description="System event, e.g. deal.created")
    payload: Dict[str, Any] = Field(default_factory=dict)


class EventResponse(CamelModel):
    event: str
    triggered: int
    task_ids: List[str]

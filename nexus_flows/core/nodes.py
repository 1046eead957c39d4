"""
Node System for Nexus Flows

Typed view over the open-ended `config` JSON stored on each flow node:
- TriggerNode: Entry point of the flow (optionally bound to a system event)
- ActionNode: Performs an integrated action (stock, sale, notification, ...)
- ConditionNode: Compares a context field and selects the "true"/"false" branch
- AiNode: Asks the configured AI provider and stores the answer in the context
- WebhookNode: Declared by the editor, not executable by the engine
- UnknownNode: Any other type (kept raw so newer definitions still load)

Action params are parsed lazily, per action identifier, into their own
model (see ACTION_PARAMS). All nodes are immutable (frozen) Pydantic models.
"""

from typing import Any, Dict, Literal, Optional, Type, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import ActionConfigurationError, GraphValidationError


# =============================================================================
# Node configs
# =============================================================================

class _Config(BaseModel):

    class Config:
        frozen = True
        extra = "allow"  # Editor may store extra keys (labels, colors, ...)
        populate_by_name = True


class TriggerConfig(_Config):
    event_type: Optional[str] = Field(None, alias="eventType")


class ActionConfig(_Config):
    action: Optional[str] = None
    params: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("params", mode="before")
    @classmethod
    def params_default(cls, v):
        return v if v is not None else {}


class ConditionConfig(_Config):
    field: Optional[str] = None
    operator: Optional[str] = None
    value: Any = None


class AiConfig(_Config):
    prompt_template: Optional[str] = Field(None, alias="promptTemplate")
    model: Optional[str] = None


# =============================================================================
# Action params (one model per action identifier)
# =============================================================================

class _Params(BaseModel):

    class Config:
        frozen = True
        extra = "ignore"
        populate_by_name = True


class UpdateStockParams(_Params):
    product_id: str = Field(..., alias="productId")
    quantity: int
    reason: Optional[str] = None


class CreateSaleParams(_Params):
    product_id: str = Field(..., alias="productId")
    quantity: int
    customer_id: Optional[str] = Field(None, alias="customerId")
    price: Optional[float] = None


class NotifyUserParams(_Params):
    user_id: str = Field(..., alias="userId")
    title: str
    message: str = ""
    priority: Optional[str] = None


class SendWhatsAppParams(_Params):
    to: str
    message: str


class UpdateDealStatusParams(_Params):
    deal_id: Optional[str] = Field(None, alias="dealId")
    status: str


ACTION_PARAMS: Dict[str, Type[_Params]] = {
    "UPDATE_STOCK": UpdateStockParams,
    "CREATE_SALE": CreateSaleParams,
    "NOTIFY_USER": NotifyUserParams,
    "SEND_WHATSAPP": SendWhatsAppParams,
    "UPDATE_DEAL_STATUS": UpdateDealStatusParams,
}

ActionParams = Union[
    UpdateStockParams,
    CreateSaleParams,
    NotifyUserParams,
    SendWhatsAppParams,
    UpdateDealStatusParams,
]


# =============================================================================
# Nodes
# =============================================================================

class BaseNode(BaseModel):
    """
    Base class for all flow nodes.

    position and metadata are layout/editor hints; the engine ignores them.
    """

    id: str = Field(..., min_length=1, description="Node identifier, unique inside its flow")
    type: str
    position: Optional[Dict[str, Any]] = None
    metadata: Optional[Dict[str, Any]] = None

    class Config:
        frozen = True  # Immutable
        extra = "ignore"

    @field_validator("id")
    @classmethod
    def validate_id_not_empty(cls, v: str) -> str:
        """Ensure ID is not empty or whitespace"""
        if not v.strip():
            raise ValueError("Node ID cannot be empty")
        return v


class TriggerNode(BaseNode):
    """
    Entry point of the flow. Traversal starts here and follows every
    outgoing edge.
    """

    type: Literal["trigger"] = "trigger"
    config: TriggerConfig = Field(default_factory=TriggerConfig)


class ActionNode(BaseNode):
    """
    Performs one integrated action.

    Example:
        {
            "id": "restock",
            "type": "action",
            "config": {"action": "UPDATE_STOCK", "params": {"productId": "p1", "quantity": 10}}
        }
    """

    type: Literal["action"] = "action"
    config: ActionConfig = Field(default_factory=ActionConfig)

    @property
    def action(self) -> Optional[str]:
        return self.config.action

    def parse_params(self) -> Optional[ActionParams]:
        """
        Parse config.params into the model registered for this action.

        Returns:
            Typed params, or None when the action identifier is not recognized

        Raises:
            ActionConfigurationError: If required params are missing or invalid
        """
        params_class = ACTION_PARAMS.get(self.config.action)
        if params_class is None:
            return None

        try:
            return params_class.model_validate(self.config.params)
        except ValidationError as e:
            missing = [
                ".".join(str(part) for part in err["loc"])
                for err in e.errors()
            ]
            raise ActionConfigurationError(
                f"Invalid params for action {self.config.action} on node {self.id}: {', '.join(missing)}",
                action=self.config.action,
            ) from e


class ConditionNode(BaseNode):
    """
    Compares context[field] with value using operator (equals, gt, lt)
    and follows the edges labeled with the resulting "true"/"false".
    """

    type: Literal["condition"] = "condition"
    config: ConditionConfig = Field(default_factory=ConditionConfig)


class AiNode(BaseNode):
    """
    Renders promptTemplate through the AI provider and stores the answer
    in context["aiOutput"].
    """

    type: Literal["ai"] = "ai"
    config: AiConfig = Field(default_factory=AiConfig)


class WebhookNode(BaseNode):
    """Declared by the editor; not executable (traversal stops here)."""

    type: Literal["webhook"] = "webhook"
    config: Dict[str, Any] = Field(default_factory=dict)


class UnknownNode(BaseNode):
    """Any node type this engine does not understand (kept raw)."""

    config: Dict[str, Any] = Field(default_factory=dict)


NodeType = Union[TriggerNode, ActionNode, ConditionNode, AiNode, WebhookNode, UnknownNode]

NODE_CLASSES: Dict[str, Type[BaseNode]] = {
    "trigger": TriggerNode,
    "action": ActionNode,
    "condition": ConditionNode,
    "ai": AiNode,
    "webhook": WebhookNode,
}


def create_node_from_dict(node_data: Dict[str, Any]) -> NodeType:
    """
    Factory function: Creates the appropriate node type from a dictionary.

    Unknown types produce an UnknownNode instead of failing, so a flow
    saved by a newer editor still loads (the engine stops at that node).

    Args:
        node_data: Dictionary with node fields (must include 'id' and 'type')

    Returns:
        Node instance of the appropriate type

    Raises:
        GraphValidationError: If the node cannot be built (e.g., empty id)

    Example:
        >>> node = create_node_from_dict({
        ...     "id": "check_qty",
        ...     "type": "condition",
        ...     "config": {"field": "qty", "operator": "gt", "value": 100}
        ... })
        >>> isinstance(node, ConditionNode)
        True
    """
    node_type = node_data.get("type")
    node_class = NODE_CLASSES.get(node_type, UnknownNode)

    data = dict(node_data)
    data["config"] = data.get("config") or {}
    if node_class is UnknownNode:
        data["type"] = str(node_type)

    try:
        return node_class(**data)
    except ValidationError as e:
        raise GraphValidationError(f"Failed to create {node_type} node {node_data.get('id')!r}: {e}")


def node_from_model(node) -> NodeType:
    """Build a typed node from a FlowNode database row."""
    return create_node_from_dict({
        "id": node.id,
        "type": node.type,
        "config": node.config,
        "position": node.position,
        "metadata": node.node_metadata,
    })

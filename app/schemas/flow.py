from pydantic import BaseModel, Field, model_validator
from typing import Dict, Any, List, Literal, Union, Annotated, get_args
from datetime import datetime

TriggerType = Literal[
    "comment_received",
    "dm_received",
    "mention_received",
    "story_reply_received",
]
ConditionOperator = Literal["contains", "equals", "not_contains", "not_equals", "regex"]
LogicOperator = Literal["AND", "OR"]
ActionType = Literal[
    "reply_comment",
    "send_dm",
    "delete_comment",
    "hide_comment",
    "like_comment",
    "send_link",
    "api_call",
    "delay",
    "set_variable",
    "stop_flow",
]


class Position(BaseModel):
    x: float = 0
    y: float = 0


class Condition(BaseModel):
    field: str
    operator: str  # checked against ConditionOperator when a flow is saved
    value: str | int | float | bool | None = ""


class TriggerNodeData(BaseModel):
    triggerType: TriggerType
    label: str | None = None


class ConditionNodeData(BaseModel):
    conditions: List[Condition] = Field(default_factory=list)
    logicOperator: LogicOperator = "AND"
    label: str | None = None


class ActionNodeData(BaseModel):
    actionType: str | None = None  # blank while the node is unconfigured in the editor
    actionConfig: Dict[str, Any] | None = None
    label: str | None = None


class TriggerNode(BaseModel):
    id: str
    type: Literal["trigger"]
    position: Position | None = None
    data: TriggerNodeData


class ConditionNode(BaseModel):
    id: str
    type: Literal["condition"]
    position: Position | None = None
    data: ConditionNodeData


class ActionNode(BaseModel):
    id: str
    type: Literal["action"]
    position: Position | None = None
    data: ActionNodeData


Node = Annotated[Union[TriggerNode, ConditionNode, ActionNode], Field(discriminator="type")]


class Edge(BaseModel):
    id: str
    source: str
    target: str
    sourceHandle: str | None = None  # "true" / "false" on condition branches
    label: str | None = None
    type: str | None = None


class FlowDefinition(BaseModel):
    """Read-only graph snapshot handed to the engine for one run."""
    nodes: List[Node] = Field(default_factory=list)
    edges: List[Edge] = Field(default_factory=list)


def validate_graph(nodes: List[Node], edges: List[Edge]) -> None:
    """Save-time checks. The engine walks stored flows without them."""
    trigger_count = sum(1 for node in nodes if node.type == "trigger")
    if trigger_count > 1:
        raise ValueError("Flow can only have one trigger node")

    node_ids = [node.id for node in nodes]
    if len(node_ids) != len(set(node_ids)):
        raise ValueError("Node ids must be unique within a flow")

    known = set(node_ids)
    for edge in edges:
        if edge.source not in known or edge.target not in known:
            raise ValueError(f"Edge {edge.id} references an unknown node")

    for node in nodes:
        if node.type == "condition":
            for condition in node.data.conditions:
                if condition.operator not in get_args(ConditionOperator):
                    raise ValueError(f"Unknown condition operator {condition.operator!r} in node {node.id}")
        elif node.type == "action" and node.data.actionType:
            if node.data.actionType not in get_args(ActionType):
                raise ValueError(f"Unknown action type {node.data.actionType!r} in node {node.id}")


class FlowCreate(BaseModel):
    account_id: int
    name: str
    description: str | None = None
    is_active: bool = False
    nodes: List[Node] = Field(default_factory=list)
    edges: List[Edge] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_graph(self):
        validate_graph(self.nodes, self.edges)
        return self


class FlowUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    is_active: bool | None = None
    nodes: List[Node] | None = None
    edges: List[Edge] | None = None


class FlowResponse(BaseModel):
    id: int
    account_id: int
    name: str
    description: str | None = None
    is_active: bool
    nodes: List[Dict[str, Any]]
    edges: List[Dict[str, Any]]
    created_at: datetime
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class NodeResult(BaseModel):
    nodeId: str
    nodeType: str
    success: bool
    output: Dict[str, Any] | None = None
    error: str | None = None


class ExecutionResult(BaseModel):
    success: bool
    executionPath: List[str] = Field(default_factory=list)
    nodeResults: List[NodeResult] = Field(default_factory=list)
    error: str | None = None


class FlowTestRequest(BaseModel):
    triggerData: Dict[str, Any] | None = None


class FlowExecutionResponse(BaseModel):
    id: int
    flow_id: int
    account_id: int
    trigger_type: str
    trigger_data: Dict[str, Any]
    status: str
    execution_path: List[str] | None = None
    node_results: List[Dict[str, Any]] | None = None
    error_message: str | None = None
    created_at: datetime

    class Config:
        from_attributes = True


class FlowTestResponse(ExecutionResult):
    executionId: int

"""
Flow execution engine.

Walks a flow graph from its trigger node, evaluating condition nodes and
dispatching action nodes, one node at a time. A run never raises to the
caller: configuration, provider and HTTP errors end the walk and are reported
in the ExecutionResult together with the path walked so far.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

from pydantic import ValidationError

from app.core.config import FLOW_MAX_STEPS
from app.schemas.flow import Edge, ExecutionResult, FlowDefinition, NodeResult
from app.services.flow_actions import ActionContext, TERMINAL_ACTIONS, execute_action
from app.services.flow_conditions import evaluate_conditions
from app.services.flow_errors import FlowConfigError
from app.services.flow_variables import extract_variables

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Continue:
    """Follow the node's single unlabeled outgoing edge."""


@dataclass(frozen=True)
class Branch:
    """Follow the condition edge labeled with handle ("true" or "false")."""
    handle: str


@dataclass(frozen=True)
class Stop:
    """End the run successfully after this node."""


@dataclass
class ExecutionContext:
    trigger_data: Dict[str, Any]
    variables: Dict[str, Any]
    execution_path: List[str] = field(default_factory=list)
    node_results: List[NodeResult] = field(default_factory=list)

    def record(self, node, success: bool, output: Dict[str, Any] | None = None, error: str | None = None):
        self.node_results.append(NodeResult(
            nodeId=node.id,
            nodeType=node.type,
            success=success,
            output=output,
            error=error,
        ))


def load_flow_definition(flow) -> FlowDefinition:
    """Accept a FlowDefinition, a Flow row or a plain {"nodes", "edges"} dict."""
    if isinstance(flow, FlowDefinition):
        return flow
    if isinstance(flow, dict):
        nodes, edges = flow.get("nodes"), flow.get("edges")
    else:
        nodes, edges = getattr(flow, "nodes", None), getattr(flow, "edges", None)
    return FlowDefinition.model_validate({"nodes": nodes or [], "edges": edges or []})


def _edge_matches_handle(edge: Edge, handle: str) -> bool:
    if edge.sourceHandle is not None:
        return edge.sourceHandle == handle
    # Older editor builds encoded the branch in the edge id ("e-cond-1-true")
    return edge.id.endswith(f"-{handle}")


def resolve_next_node(definition: FlowDefinition, node_id: str, step):
    """Return the node a NextStep leads to, or None when the walk ends."""
    if isinstance(step, Stop):
        return None

    for edge in definition.edges:
        if edge.source != node_id:
            continue
        if isinstance(step, Branch) and not _edge_matches_handle(edge, step.handle):
            continue
        for node in definition.nodes:
            if node.id == edge.target:
                return node
        logger.warning("Edge %s points at missing node %s; ending flow", edge.id, edge.target)
        return None
    return None


class FlowEngine:
    def __init__(
        self,
        flow,
        trigger_data: Dict[str, Any],
        provider,
        http_client=None,
        max_steps: int = FLOW_MAX_STEPS,
        sleep=asyncio.sleep,
    ):
        self.flow = flow
        self.provider = provider
        self.http_client = http_client
        self.max_steps = max_steps
        self.sleep = sleep
        trigger_data = trigger_data or {}
        self.context = ExecutionContext(
            trigger_data=trigger_data,
            variables=extract_variables(trigger_data),
        )

    def _find_trigger_node(self, definition: FlowDefinition):
        triggers = [node for node in definition.nodes if node.type == "trigger"]
        if not triggers:
            raise FlowConfigError("No trigger node found in flow")
        if len(triggers) > 1:
            logger.warning(
                "Flow has %s trigger nodes; starting from the first (%s)",
                len(triggers),
                triggers[0].id,
            )
        return triggers[0]

    async def _execute_node(self, node):
        self.context.execution_path.append(node.id)
        logger.info("▶ [FlowEngine] Visiting %s node %s", node.type, node.id)

        if node.type == "trigger":
            self.context.record(node, True, {
                "triggerType": node.data.triggerType,
                "triggerData": self.context.trigger_data,
            })
            return Continue()

        if node.type == "condition":
            conditions_met = evaluate_conditions(
                node.data.conditions,
                self.context.variables,
                node.data.logicOperator,
            )
            self.context.record(node, True, {
                "conditionsMet": conditions_met,
                "conditions": [condition.model_dump() for condition in node.data.conditions],
                "logicOperator": node.data.logicOperator,
                "variables": dict(self.context.variables),
            })
            return Branch("true" if conditions_met else "false")

        action_type = node.data.actionType
        action_config = node.data.actionConfig
        if action_type and action_config is not None:
            action_context = ActionContext(
                variables=self.context.variables,
                trigger_data=self.context.trigger_data,
                provider=self.provider,
                http_client=self.http_client,
                sleep=self.sleep,
            )
            try:
                result = await execute_action(action_type, action_config, action_context)
            except Exception as e:
                self.context.record(node, False, error=str(e))
                raise
            self.context.record(node, True, {
                "actionType": action_type,
                "config": action_config,
                "result": result,
            })
        else:
            self.context.record(node, True)

        if action_type in TERMINAL_ACTIONS:
            logger.info("⏹ [FlowEngine] %s stopped the flow at node %s", action_type, node.id)
            return Stop()
        return Continue()

    def _result(self, success: bool, error: str | None = None) -> ExecutionResult:
        return ExecutionResult(
            success=success,
            executionPath=list(self.context.execution_path),
            nodeResults=list(self.context.node_results),
            error=error,
        )

    async def execute(self) -> ExecutionResult:
        try:
            definition = load_flow_definition(self.flow)
            current = self._find_trigger_node(definition)

            steps = 0
            while current is not None:
                steps += 1
                if steps > self.max_steps:
                    raise FlowConfigError(f"Flow exceeded maximum of {self.max_steps} steps")
                step = await self._execute_node(current)
                current = resolve_next_node(definition, current.id, step)

            logger.info("✅ [FlowEngine] Flow completed: %s", " -> ".join(self.context.execution_path))
            return self._result(True)
        except ValidationError as e:
            logger.error("❌ [FlowEngine] Invalid flow definition: %s", e)
            return self._result(False, f"Invalid flow definition: {e}")
        except Exception as e:
            logger.error("❌ [FlowEngine] Flow failed after %s: %s", self.context.execution_path, e)
            return self._result(False, str(e) or e.__class__.__name__)

"""
Exceptions raised while executing a flow.

The engine catches all of these and reports them in the execution result;
they only reach callers that use the dispatcher or evaluators directly.
"""


class FlowError(Exception):
    """Base class for flow execution errors."""


class FlowConfigError(FlowError):
    """The flow graph itself cannot be executed (no trigger, runaway cycle)."""


class ActionConfigError(FlowError):
    """An action node is missing a field it needs, or names an unknown action."""

    def __init__(self, action_type: str, message: str):
        self.action_type = action_type
        super().__init__(message)

    @classmethod
    def missing(cls, field: str, action_type: str) -> "ActionConfigError":
        return cls(action_type, f"Missing {field} for {action_type} action")

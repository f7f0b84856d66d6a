"""Per-request routing decision.

The call filter attaches an ``InvocationDecision`` to the ``ToolRequest``
before the concrete tool runs.  Tools read it back with ``get_decision()``
or, without access to the request, through the ``current_decision``
``ContextVar`` that the dispatcher sets for the duration of the call.
"""

from contextvars import ContextVar
from dataclasses import dataclass
from typing import Optional

from .messages import ToolRequest

DECISION_ITEMS_KEY = "ab.tool.invocation"
"""str: Key under which the decision is stored in ``ToolRequest.items``."""

current_decision: ContextVar[Optional["InvocationDecision"]] = ContextVar("current_decision", default=None)
"""ContextVar holding the decision of the tool call currently executing."""


@dataclass(frozen=True)
class InvocationDecision:
    """The treatment resolved for one tool call.

    Attributes:
        canonical_name: The stable name exposed to callers.
        experiment: Experiment the treatment belongs to.
        treatment: Treatment label within the experiment.
        concrete_name: Name of the tool that actually runs.
        bucket_key: Identity string used to seed the selection.
    """

    canonical_name: str
    experiment: str
    treatment: str
    concrete_name: str
    bucket_key: str


def set_decision(request: ToolRequest, decision: InvocationDecision) -> None:
    request.items[DECISION_ITEMS_KEY] = decision


def get_decision(request: ToolRequest) -> Optional[InvocationDecision]:
    value = request.items.get(DECISION_ITEMS_KEY)
    return value if isinstance(value, InvocationDecision) else None

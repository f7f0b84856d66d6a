from .config import ABConfig, ToolConfig, TreatmentConfig
from .decorators import tool, treatment
from .messages import ToolRequest, ToolDescriptor, CallToolResult
from .context import InvocationDecision, current_decision, get_decision, set_decision
from .tools import ToolDefinition
from .registry import ToolRegistry
from .experiments import ExperimentRegistry, Variant, VariantRegistry
from .selector import VariantSelector, stable_hash
from .bucketing import BucketKeyResolver, ScopeClosedEvent
from .router import ToolVariantRouter, ToolSelection
from .interceptor import ListToolsInterceptor, CallToolInterceptor
from .filters import ABListToolsFilter, ABCallToolFilter
from .dispatcher import ToolDispatcher
from .scanner import ToolScanner
from .validation import ExperimentValidator, ValidationReport, ValidationIssue, Severity
from .exceptions import ABError, ToolRegistrationError, ToolNotFoundError, ToolArgumentError, ToolExecutionError

__all__ = [
    "ABConfig",
    "ToolConfig",
    "TreatmentConfig",
    "tool",
    "treatment",
    "ToolRequest",
    "ToolDescriptor",
    "CallToolResult",
    "InvocationDecision",
    "current_decision",
    "get_decision",
    "set_decision",
    "ToolDefinition",
    "ToolRegistry",
    "ExperimentRegistry",
    "Variant",
    "VariantRegistry",
    "VariantSelector",
    "stable_hash",
    "BucketKeyResolver",
    "ScopeClosedEvent",
    "ToolVariantRouter",
    "ToolSelection",
    "ListToolsInterceptor",
    "CallToolInterceptor",
    "ABListToolsFilter",
    "ABCallToolFilter",
    "ToolDispatcher",
    "ToolScanner",
    "ExperimentValidator",
    "ValidationReport",
    "ValidationIssue",
    "Severity",
    "ABError",
    "ToolRegistrationError",
    "ToolNotFoundError",
    "ToolArgumentError",
    "ToolExecutionError"
]

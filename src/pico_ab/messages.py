"""Request and result shapes exchanged with the tool dispatcher.

``ToolRequest`` is the mutable per-request object that flows through the
interceptor chain: the call filter may rewrite ``name`` and attach routing
data to ``items``.  ``ToolDescriptor`` is one entry of a tool listing and
``CallToolResult`` wraps the value returned by the executed tool.
"""

import copy
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional


@dataclass
class ToolRequest:
    """A single ``list_tools`` or ``call_tool`` request.

    Attributes:
        name: Target tool name; ``None`` for listing requests.
        arguments: Tool arguments as received from the caller.
        user: Authenticated identity claims (e.g. ``{"sub": "u-1"}``), if any.
        session_id: Protocol-level session identifier, if the transport has one.
        transport: Opaque handle of the connection that carried the request.
        services: Opaque handle of the request's service scope.
        server: Opaque handle of the server instance handling the request.
        items: Free-form per-request storage shared by interceptors and tools.
    """

    name: Optional[str] = None
    arguments: Dict[str, Any] = field(default_factory=dict)
    user: Optional[Mapping[str, Any]] = None
    session_id: Optional[str] = None
    transport: Any = None
    services: Any = None
    server: Any = None
    items: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ToolDescriptor:
    """Discovery entry for one tool.

    Attributes:
        name: The name callers use to invoke the tool.
        description: Human readable description.
        input_schema: JSON schema of the tool arguments.
        output_schema: JSON schema of structured output, if declared.
        title: Optional display title.
        annotations: Free-form behavioural hints.
        meta: Free-form metadata; routing stamps ``ab_*`` keys here.
    """

    name: str
    description: str = ""
    input_schema: Dict[str, Any] = field(default_factory=dict)
    output_schema: Optional[Dict[str, Any]] = None
    title: Optional[str] = None
    annotations: Dict[str, Any] = field(default_factory=dict)
    meta: Dict[str, Any] = field(default_factory=dict)

    def renamed(self, name: str, **meta: Any) -> "ToolDescriptor":
        """Return a copy exposed under *name* with *meta* merged into a deep copy of ``meta``."""
        merged = copy.deepcopy(self.meta)
        merged.update(meta)
        return replace(self, name=name, meta=merged)


@dataclass
class CallToolResult:
    content: Any
    tool_name: str
    is_error: bool = False

"""In-process tool dispatcher.

``ToolDispatcher`` is the underlying "list tools" / "call tool by name"
stage that routing filters wrap.  It runs every registered
``ListToolsInterceptor`` and ``CallToolInterceptor`` in order around its core
operations and executes the resolved ``ToolDefinition``.
"""

from typing import Any, List, Optional

from pico_ioc import PicoContainer, component

from .context import current_decision, get_decision
from .exceptions import ABError, ToolExecutionError, ToolNotFoundError
from .interceptor import CallToolInterceptor, ListToolsInterceptor, run_chain, sort_interceptors
from .logging import get_logger
from .messages import CallToolResult, ToolDescriptor, ToolRequest
from .registry import ToolRegistry

logger = get_logger(__name__)


@component
class ToolDispatcher:
    """Lists and invokes registered tools through the interceptor chains.

    Args:
        registry: The ``ToolRegistry`` holding concrete tools.
        list_interceptors: Interceptors wrapping ``list_tools``.
        call_interceptors: Interceptors wrapping ``call_tool``.
        container: Used to resolve ``inject`` parameters of tools.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        list_interceptors: List[ListToolsInterceptor],
        call_interceptors: List[CallToolInterceptor],
        container: Optional[PicoContainer] = None,
    ):
        self.registry = registry
        self.list_interceptors = sort_interceptors(list_interceptors)
        self.call_interceptors = sort_interceptors(call_interceptors)
        self.container = container

    async def list_tools(self, request: Optional[ToolRequest] = None) -> List[ToolDescriptor]:
        """Return the tool listing as seen by the caller of *request*."""
        return await run_chain(self.list_interceptors, request or ToolRequest(), self._list_core)

    async def call_tool(self, request: ToolRequest) -> CallToolResult:
        """Invoke the tool named by *request* after the interceptors ran.

        Raises:
            ToolNotFoundError: If no tool matches the (possibly rewritten) name.
            ToolArgumentError: If the arguments do not match the tool schema.
            ToolExecutionError: If the tool itself raised.
        """
        return await run_chain(self.call_interceptors, request, self._call_core)

    async def _list_core(self, request: ToolRequest) -> List[ToolDescriptor]:
        return [t.descriptor() for t in self.registry.get_tools()]

    async def _call_core(self, request: ToolRequest) -> CallToolResult:
        definition = self.registry.get_tool(request.name) if request.name else None
        if definition is None:
            raise ToolNotFoundError(request.name or "")

        token = current_decision.set(get_decision(request))
        try:
            content = await definition.invoke(request.arguments, request, self._resolve_service)
        except ABError:
            raise
        except Exception as e:
            logger.exception("Tool '%s' raised", definition.name)
            raise ToolExecutionError(definition.name) from e
        finally:
            current_decision.reset(token)

        return CallToolResult(content=content, tool_name=definition.name)

    def _resolve_service(self, key: Any) -> Any:
        if self.container is None:
            raise ABError(f"No container available to resolve {key!r}")
        return self.container.get(key)

"""Interceptor contracts around the dispatcher's list and call operations.

Interceptors run in ascending ``order`` around the dispatcher's core
operation.  Each one receives the request and a ``call_next`` coroutine
function; it may modify the request before proceeding, post-process the
result, or short-circuit by returning without calling ``call_next``.
"""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, List, Sequence, TypeVar

from .messages import CallToolResult, ToolDescriptor, ToolRequest

R = TypeVar("R")

ListNext = Callable[[ToolRequest], Awaitable[List[ToolDescriptor]]]
CallNext = Callable[[ToolRequest], Awaitable[CallToolResult]]


class ListToolsInterceptor(ABC):
    """Wraps ``ToolDispatcher.list_tools``.

    Attributes:
        order: Position in the chain; lower values run first (outermost).
    """

    order: int = 0

    @abstractmethod
    async def invoke(self, request: ToolRequest, call_next: ListNext) -> List[ToolDescriptor]:
        """Intercept a listing request.

        Args:
            request: The listing request.
            call_next: Proceeds to the next interceptor or the core listing.

        Returns:
            The tool descriptors to expose.
        """


class CallToolInterceptor(ABC):
    """Wraps ``ToolDispatcher.call_tool``.

    Attributes:
        order: Position in the chain; lower values run first (outermost).
    """

    order: int = 0

    @abstractmethod
    async def invoke(self, request: ToolRequest, call_next: CallNext) -> CallToolResult:
        """Intercept a tool call.

        Args:
            request: The call request; ``request.name`` may be rewritten.
            call_next: Proceeds to the next interceptor or the core invocation.

        Returns:
            The call result.
        """


def sort_interceptors(interceptors: Sequence[Any]) -> List[Any]:
    return sorted(interceptors, key=lambda i: getattr(i, "order", 0))


async def run_chain(
    interceptors: Sequence[Any],
    request: ToolRequest,
    terminal: Callable[[ToolRequest], Awaitable[R]],
) -> R:
    """Run *request* through *interceptors* and finally *terminal*.

    Args:
        interceptors: Already ordered interceptors.
        request: The request passed along the chain.
        terminal: The dispatcher's core operation.

    Returns:
        Whatever the outermost interceptor (or *terminal*) returns.
    """

    async def call_at(index: int, req: ToolRequest) -> R:
        if index >= len(interceptors):
            return await terminal(req)
        return await interceptors[index].invoke(req, lambda r: call_at(index + 1, r))

    return await call_at(0, request)

"""Routing filters that expose one canonical tool per experiment.

``ABListToolsFilter`` collapses the treatments of each experiment into a
single listing entry under the canonical name.  ``ABCallToolFilter``
rewrites calls to a canonical (or explicitly forced concrete) name into the
selected treatment and attaches the ``InvocationDecision`` to the request.
"""

from typing import List

from pico_ioc import component

from .context import InvocationDecision, set_decision
from .interceptor import CallNext, CallToolInterceptor, ListNext, ListToolsInterceptor
from .logging import format_decision, get_logger
from .messages import CallToolResult, ToolDescriptor, ToolRequest
from .router import ToolSelection, ToolVariantRouter

logger = get_logger(__name__)

META_EXPERIMENT = "ab_experiment"
META_TREATMENT = "ab_treatment"
META_CONCRETE = "ab_concrete"


@component
class ABListToolsFilter(ListToolsInterceptor):
    """Replaces treatment entries with one entry per canonical name.

    Runs after the core listing.  The canonical entry copies the schema and
    description of the treatment the caller would currently be routed to and
    records it in ``meta`` (``ab_experiment``, ``ab_treatment``,
    ``ab_concrete``).  Concrete treatment names never appear; untreated tools
    follow the canonical entries in their original order.

    Args:
        router: The shared ``ToolVariantRouter``.
    """

    order = 100

    def __init__(self, router: ToolVariantRouter):
        self.router = router

    async def invoke(self, request: ToolRequest, call_next: ListNext) -> List[ToolDescriptor]:
        tools = await call_next(request)

        if not self.router.enabled or self.router.variants.is_empty:
            return tools

        variants = self.router.variants
        bucket_key = self.router.resolver.resolve(request)
        rewritten: List[ToolDescriptor] = []

        for canonical_name in variants.canonical_names():
            selection = self.router.select(request, canonical_name, bucket_key=bucket_key)
            if selection is None:
                continue
            rewritten.append(self._as_canonical(selection))

        for descriptor in tools:
            if variants.is_variant_name(descriptor.name) or variants.is_canonical_name(descriptor.name):
                continue
            rewritten.append(descriptor)

        return rewritten

    @staticmethod
    def _as_canonical(selection: ToolSelection) -> ToolDescriptor:
        decision = selection.decision
        source = selection.variant.tool.descriptor()
        return source.renamed(
            decision.canonical_name,
            **{
                META_EXPERIMENT: decision.experiment,
                META_TREATMENT: decision.treatment,
                META_CONCRETE: decision.concrete_name,
            },
        )


@component
class ABCallToolFilter(CallToolInterceptor):
    """Routes a call to the treatment selected for the caller.

    Runs before the core invocation:

    1. a concrete treatment name is honoured as-is (the caller forced it);
    2. a canonical name is resolved through the bucket key and selector;
    3. any other name passes through without a decision.

    In cases 1 and 2 the decision is attached to the request and
    ``request.name`` is rewritten to the concrete tool name.

    Args:
        router: The shared ``ToolVariantRouter``.
    """

    order = 100

    def __init__(self, router: ToolVariantRouter):
        self.router = router

    async def invoke(self, request: ToolRequest, call_next: CallNext) -> CallToolResult:
        incoming = request.name
        if not self.router.enabled or not incoming or self.router.variants.is_empty:
            return await call_next(request)

        forced = self.router.resolve_concrete(incoming)
        if forced is not None:
            decision = self.router.decide(request, forced)
        else:
            selection = self.router.select(request, incoming)
            if selection is None:
                return await call_next(request)
            decision = selection.decision

        self._route(request, decision, forced=forced is not None)
        return await call_next(request)

    def _route(self, request: ToolRequest, decision: InvocationDecision, forced: bool) -> None:
        set_decision(request, decision)
        request.name = decision.concrete_name

        log = logger.info if self.router.config.log_decisions else logger.debug
        log("%s forced=%s", format_decision(decision), forced)

"""Treatment routing for canonical tool names.

``ToolVariantRouter`` owns the variant index and combines it with the
``BucketKeyResolver`` and ``VariantSelector`` to turn a request into an
``InvocationDecision``.  Both routing filters go through it, so listing and
calling always agree on the treatment a caller sees.
"""

import threading
from typing import NamedTuple, Optional

from pico_ioc import component

from .bucketing import BucketKeyResolver
from .config import ABConfig
from .context import InvocationDecision
from .experiments import ExperimentRegistry, Variant, VariantRegistry
from .logging import get_logger
from .messages import ToolRequest
from .registry import ToolRegistry
from .selector import VariantSelector
from .validation import ExperimentValidator, Severity

logger = get_logger(__name__)


class ToolSelection(NamedTuple):
    variant: Variant
    decision: InvocationDecision


@component(scope="singleton")
class ToolVariantRouter:
    """Resolves canonical and concrete tool names to treatments.

    The variant index is built from ``ToolRegistry`` and
    ``ExperimentRegistry`` exactly once, on first use or on an explicit
    ``build()`` during startup wiring, and is read without locks afterwards.

    Args:
        tool_registry: Registered tools.
        experiments: Explicit treatment registrations.
        resolver: Bucket key resolver.
        selector: Weighted variant selector.
        config: Routing configuration; defaults to ``ABConfig()``.
    """

    def __init__(
        self,
        tool_registry: ToolRegistry,
        experiments: ExperimentRegistry,
        resolver: BucketKeyResolver,
        selector: VariantSelector,
        config: Optional[ABConfig] = None,
    ):
        self.tool_registry = tool_registry
        self.experiments = experiments
        self.resolver = resolver
        self.selector = selector
        self.config = config or ABConfig()
        self._variants: Optional[VariantRegistry] = None
        self._build_lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    @property
    def variants(self) -> VariantRegistry:
        """The variant index, built on first access."""
        if self._variants is None:
            self.build()
        return self._variants

    def build(self) -> VariantRegistry:
        """Build the variant index if it has not been built yet.

        Validation issues are logged; they never prevent the build.

        Returns:
            The (possibly already built) ``VariantRegistry``.
        """
        with self._build_lock:
            if self._variants is not None:
                return self._variants

            tools = self.tool_registry.get_tools()
            variants = VariantRegistry.build(tools, self.experiments)

            report = ExperimentValidator().validate(variants, [t.name for t in tools])
            for issue in report.issues:
                log = logger.error if issue.severity == Severity.ERROR else logger.warning
                log("Experiment '%s': %s", issue.field, issue.message)

            logger.info(
                "Built variant index: %d canonical tools over %d registered tools",
                len(variants.canonical_names()),
                len(tools),
            )
            self._variants = variants
            return variants

    def select(
        self, request: ToolRequest, canonical_name: str, bucket_key: Optional[str] = None
    ) -> Optional[ToolSelection]:
        """Pick the treatment of *canonical_name* for the caller of *request*.

        Args:
            request: The incoming request.
            canonical_name: Canonical tool name.
            bucket_key: Precomputed bucket key; resolved from *request* if omitted.

        Returns:
            The selection, or ``None`` if *canonical_name* has no variants.
        """
        candidates = self.variants.variants_for(canonical_name)
        if not candidates:
            return None

        key = bucket_key if bucket_key is not None else self.resolver.resolve(request)
        winner = self.selector.pick(candidates, key)
        if winner is None:
            return None
        return ToolSelection(winner, self._decision(winner, winner.canonical_name, key))

    def resolve_concrete(self, name: str) -> Optional[Variant]:
        return self.variants.resolve_concrete(name)

    def decide(self, request: ToolRequest, variant: Variant) -> InvocationDecision:
        """Build the decision for an explicitly requested variant.

        The bucket key is still resolved so the decision is complete for
        logging.
        """
        return self._decision(variant, variant.canonical_name, self.resolver.resolve(request))

    @staticmethod
    def _decision(variant: Variant, canonical_name: str, bucket_key: str) -> InvocationDecision:
        return InvocationDecision(
            canonical_name=canonical_name,
            experiment=variant.experiment,
            treatment=variant.treatment,
            concrete_name=variant.concrete_name,
            bucket_key=bucket_key,
        )

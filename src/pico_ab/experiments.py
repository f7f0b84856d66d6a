"""A/B experiment declarations and the variant index built from them.

``ExperimentRegistry`` collects treatments declared explicitly during startup
wiring.  ``VariantRegistry`` is the read-only index built once from the
registered tools: canonical name -> ordered variants, and concrete tool
name -> variant.  Both lookups ignore case.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from pico_ioc import component

from .config import DEFAULT_WEIGHT, TreatmentConfig
from .tools import ToolDefinition


@component(scope="singleton")
class ExperimentRegistry:
    """Singleton registry of explicitly declared treatments.

    Explicit registrations take precedence over ``@treatment`` metadata on
    the tool function.  Register everything before the first request; the
    variant index is built once and does not observe later changes.

    Example:
        >>> experiments = container.get(ExperimentRegistry)
        >>> experiments.register_experiment("summarize", {
        ...     "summarize_v1": 0.8,
        ...     "summarize_v2": 0.2,
        ... })
    """

    def __init__(self):
        self._treatments: Dict[str, TreatmentConfig] = {}

    def register_treatment(
        self,
        tool_name: str,
        treatment: str,
        experiment: Optional[str] = None,
        weight: float = DEFAULT_WEIGHT,
        canonical_name: Optional[str] = None,
    ) -> TreatmentConfig:
        """Declare *tool_name* as a treatment of an experiment.

        Args:
            tool_name: Concrete name of a registered tool.
            treatment: Treatment label (e.g. ``"control"``).
            experiment: Experiment name; defaults to the canonical name.
            weight: Relative traffic share. Non-positive values become 1.0.
            canonical_name: Name exposed to callers; defaults to *tool_name*.

        Returns:
            The stored ``TreatmentConfig``.
        """
        config = TreatmentConfig(
            treatment=treatment,
            experiment=experiment,
            weight=weight,
            canonical_name=canonical_name,
        )
        self._treatments[tool_name] = config
        return config

    def register_experiment(
        self, public_name: str, variants: Dict[str, float], experiment: Optional[str] = None
    ) -> None:
        """Register every tool in *variants* as a treatment behind *public_name*.

        Each concrete tool name doubles as its treatment label.

        Args:
            public_name: Canonical name exposed to callers.
            variants: Mapping of concrete tool names to relative weights.
            experiment: Experiment name; defaults to *public_name*.
        """
        for tool_name, weight in variants.items():
            self.register_treatment(
                tool_name,
                treatment=tool_name,
                experiment=experiment,
                weight=weight,
                canonical_name=public_name,
            )

    def treatment_for(self, tool_name: str) -> Optional[TreatmentConfig]:
        return self._treatments.get(tool_name)


@dataclass(frozen=True)
class Variant:
    """One treatment competing for the traffic of a canonical name.

    Attributes:
        canonical_name: Stable name exposed to callers.
        experiment: Experiment shared by competing variants; salts the hash.
        treatment: Label of this variant within the experiment.
        weight: Relative traffic share, always > 0.
        concrete_name: Name of the tool that actually runs.
        tool: The tool definition, used for listings.
    """

    canonical_name: str
    experiment: str
    treatment: str
    weight: float
    concrete_name: str
    tool: Optional[ToolDefinition] = field(default=None, compare=False, repr=False)


class VariantRegistry:
    def __init__(self):
        self._by_canonical: Dict[str, Tuple[str, List[Variant]]] = {}
        self._by_concrete: Dict[str, Variant] = {}

    @classmethod
    def build(
        cls, tools: Iterable[ToolDefinition], explicit: Optional[ExperimentRegistry] = None
    ) -> "VariantRegistry":
        """Index every tool that carries a treatment.

        Tools without a treatment are skipped and stay passthrough tools.

        Args:
            tools: Declared tools, in declaration order.
            explicit: Optional explicit registrations, which win over
                decorator metadata.

        Returns:
            A new, fully built ``VariantRegistry``.
        """
        registry = cls()
        for definition in tools:
            treatment = explicit.treatment_for(definition.name) if explicit else None
            if treatment is None:
                treatment = definition.treatment
            if treatment is None:
                continue

            canonical_name = treatment.canonical_name or definition.name
            experiment = treatment.experiment
            if not experiment or not experiment.strip():
                experiment = canonical_name

            registry._add(
                Variant(
                    canonical_name=canonical_name,
                    experiment=experiment,
                    treatment=treatment.treatment,
                    weight=treatment.weight,
                    concrete_name=definition.name,
                    tool=definition,
                )
            )
        return registry

    def _add(self, variant: Variant) -> None:
        concrete_key = variant.concrete_name.casefold()
        previous = self._by_concrete.get(concrete_key)
        if previous is not None:
            _, siblings = self._by_canonical[previous.canonical_name.casefold()]
            siblings.remove(previous)
            if not siblings:
                del self._by_canonical[previous.canonical_name.casefold()]
        self._by_concrete[concrete_key] = variant

        canonical_key = variant.canonical_name.casefold()
        if canonical_key not in self._by_canonical:
            self._by_canonical[canonical_key] = (variant.canonical_name, [])
        self._by_canonical[canonical_key][1].append(variant)

    @property
    def is_empty(self) -> bool:
        return not self._by_canonical

    def canonical_names(self) -> List[str]:
        return [display for display, _ in self._by_canonical.values()]

    def is_canonical_name(self, name: str) -> bool:
        return name.casefold() in self._by_canonical

    def is_variant_name(self, name: str) -> bool:
        return name.casefold() in self._by_concrete

    def resolve_concrete(self, name: str) -> Optional[Variant]:
        return self._by_concrete.get(name.casefold())

    def variants_for(self, canonical_name: str) -> Tuple[Variant, ...]:
        entry = self._by_canonical.get(canonical_name.casefold())
        return tuple(entry[1]) if entry else ()

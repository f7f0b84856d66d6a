from dataclasses import dataclass, field
from typing import Iterable, List
from enum import Enum
from .experiments import VariantRegistry

class Severity(str, Enum):
    WARNING = "warning"
    ERROR = "error"

@dataclass
class ValidationIssue:
    field: str
    message: str
    severity: Severity

@dataclass
class ValidationReport:
    valid: bool
    issues: List[ValidationIssue] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(i.severity == Severity.ERROR for i in self.issues)

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == Severity.WARNING]

class ExperimentValidator:
    def validate(self, registry: VariantRegistry, tool_names: Iterable[str] = ()) -> ValidationReport:
        issues = []
        untreated = {n.casefold(): n for n in tool_names if not registry.is_variant_name(n)}

        for canonical in registry.canonical_names():
            variants = registry.variants_for(canonical)

            if not canonical.strip():
                issues.append(ValidationIssue(canonical, "Canonical name cannot be empty", Severity.ERROR))

            if len(variants) == 1:
                issues.append(ValidationIssue(
                    canonical,
                    f"Only one treatment ('{variants[0].treatment}'); all traffic goes to '{variants[0].concrete_name}'",
                    Severity.WARNING
                ))

            experiments = {v.experiment for v in variants}
            if len(experiments) > 1:
                issues.append(ValidationIssue(
                    canonical,
                    f"Treatments declare different experiments {sorted(experiments)}; "
                    f"'{variants[0].experiment}' is used for selection",
                    Severity.WARNING
                ))

            labels = [v.treatment for v in variants]
            duplicated = sorted({t for t in labels if labels.count(t) > 1})
            if duplicated:
                issues.append(ValidationIssue(canonical, f"Duplicate treatment labels {duplicated}", Severity.WARNING))

            if len(variants) > 1 and registry.is_variant_name(canonical):
                forced = registry.resolve_concrete(canonical)
                issues.append(ValidationIssue(
                    canonical,
                    f"Canonical name matches concrete tool '{forced.concrete_name}'; calls by this name always run it",
                    Severity.WARNING
                ))

            shadowed = untreated.get(canonical.casefold())
            if shadowed:
                issues.append(ValidationIssue(
                    canonical,
                    f"Canonical name hides untreated tool '{shadowed}'",
                    Severity.WARNING
                ))

        return ValidationReport(valid=not any(i.severity == Severity.ERROR for i in issues), issues=issues)

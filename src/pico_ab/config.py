import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

DEFAULT_WEIGHT = 1.0
DEFAULT_IDENTITY_CLAIMS = ["sub", "name"]

_FALSE_VALUES = ("0", "false", "no", "off")


@dataclass
class TreatmentConfig:
    treatment: str
    experiment: Optional[str] = None
    weight: float = DEFAULT_WEIGHT
    canonical_name: Optional[str] = None

    def __post_init__(self):
        if self.weight is None or not self.weight > 0:
            self.weight = DEFAULT_WEIGHT
        self.weight = float(self.weight)


@dataclass
class ToolConfig:
    name: str
    description: str = ""
    title: Optional[str] = None
    inject: List[str] = field(default_factory=list)
    annotations: Dict[str, Any] = field(default_factory=dict)
    meta: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ABConfig:
    enabled: bool = True
    identity_claims: List[str] = field(default_factory=lambda: list(DEFAULT_IDENTITY_CLAIMS))
    log_decisions: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ABConfig":
        env = os.environ if environ is None else environ

        claims_raw = env.get("PICO_AB_IDENTITY_CLAIMS", "")
        claims = [c.strip() for c in claims_raw.split(",") if c.strip()]

        return cls(
            enabled=env.get("PICO_AB_ENABLED", "true").strip().lower() not in _FALSE_VALUES,
            identity_claims=claims or list(DEFAULT_IDENTITY_CLAIMS),
            log_decisions=env.get("PICO_AB_LOG_DECISIONS", "false").strip().lower() in ("1", "true", "yes", "on"),
        )

from typing import Any, Callable, Dict, Iterable, Optional
from .config import ToolConfig, TreatmentConfig

TOOL_META_KEY = "_pico_ab_tool_meta"
TREATMENT_META_KEY = "_pico_ab_treatment_meta"


def tool(
    name: Optional[str] = None,
    description: str = "",
    title: Optional[str] = None,
    inject: Optional[Iterable[str]] = None,
    annotations: Optional[Dict[str, Any]] = None,
    meta: Optional[Dict[str, Any]] = None
) -> Callable[[Callable], Callable]:

    def decorator(func: Callable) -> Callable:
        final_desc = description
        if not final_desc and func.__doc__:
            final_desc = func.__doc__.strip().split('\n')[0]

        config = ToolConfig(
            name=name or func.__name__,
            description=final_desc,
            title=title,
            inject=list(inject or []),
            annotations=dict(annotations or {}),
            meta=dict(meta or {})
        )
        setattr(func, TOOL_META_KEY, config)
        return func

    return decorator


def treatment(
    experiment: Optional[str],
    treatment: str,
    weight: float = 1.0,
    canonical_name: Optional[str] = None
) -> Callable[[Callable], Callable]:
    """Mark a tool function as one treatment of an experiment.

    Stack it on top of ``@tool``.  Treatments sharing a ``canonical_name``
    compete for the traffic of that name; ``experiment`` defaults to the
    canonical name when blank.
    """
    def decorator(func: Callable) -> Callable:
        config = TreatmentConfig(
            treatment=treatment,
            experiment=experiment,
            weight=weight,
            canonical_name=canonical_name
        )
        setattr(func, TREATMENT_META_KEY, config)
        return func

    return decorator

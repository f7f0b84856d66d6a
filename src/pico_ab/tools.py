import copy
import inspect
from dataclasses import replace
from typing import Any, Callable, Dict, Iterable, List, Optional, Type, get_type_hints
from pydantic import BaseModel, ValidationError, create_model

from .config import ToolConfig, TreatmentConfig
from .decorators import TOOL_META_KEY, TREATMENT_META_KEY
from .exceptions import ABError, ToolArgumentError
from .messages import ToolDescriptor, ToolRequest

ServiceResolver = Callable[[Any], Any]


class ToolDefinition:
    def __init__(self, func: Callable[..., Any], config: ToolConfig, treatment: Optional[TreatmentConfig] = None):
        self.func = func
        self.config = config
        self.name = config.name
        self.description = config.description
        self.treatment = treatment
        self._request_params: List[str] = []
        self._service_params: Dict[str, Any] = {}
        self.args_schema = self._create_schema_from_sig()
        self.input_schema = self.args_schema.model_json_schema()
        self.output_schema = self._create_output_schema()

    @classmethod
    def from_function(
        cls,
        func: Callable[..., Any],
        name: Optional[str] = None,
        description: Optional[str] = None,
        inject: Optional[Iterable[str]] = None,
        treatment: Optional[TreatmentConfig] = None
    ) -> "ToolDefinition":
        config = getattr(func, TOOL_META_KEY, None)
        if config is None:
            doc = (func.__doc__ or "").strip()
            config = ToolConfig(name=func.__name__, description=doc.split('\n')[0] if doc else "")

        overrides: Dict[str, Any] = {}
        if name:
            overrides["name"] = name
        if description is not None:
            overrides["description"] = description
        if inject is not None:
            overrides["inject"] = list(inject)
        if overrides:
            config = replace(config, **overrides)

        return cls(func, config, treatment or getattr(func, TREATMENT_META_KEY, None))

    def _create_schema_from_sig(self) -> Type[BaseModel]:
        sig = inspect.signature(self.func)
        type_hints = get_type_hints(self.func, include_extras=True)

        fields = {}
        for param_name, param in sig.parameters.items():
            if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
                continue
            annotation = type_hints.get(param_name, Any)
            if annotation is ToolRequest:
                self._request_params.append(param_name)
                continue
            if param_name in self.config.inject:
                self._service_params[param_name] = annotation
                continue
            default = param.default if param.default is not inspect.Parameter.empty else ...
            fields[param_name] = (annotation, default)

        return create_model(f"{self.name}Input", **fields)

    def _create_output_schema(self) -> Optional[Dict[str, Any]]:
        return_type = get_type_hints(self.func).get("return")
        try:
            if return_type is not None and issubclass(return_type, BaseModel):
                return return_type.model_json_schema()
        except TypeError:
            pass
        return None

    def descriptor(self) -> ToolDescriptor:
        return ToolDescriptor(
            name=self.name,
            description=self.description,
            input_schema=copy.deepcopy(self.input_schema),
            output_schema=copy.deepcopy(self.output_schema),
            title=self.config.title,
            annotations=dict(self.config.annotations),
            meta=copy.deepcopy(self.config.meta)
        )

    async def invoke(
        self,
        arguments: Optional[Dict[str, Any]] = None,
        request: Optional[ToolRequest] = None,
        resolve_service: Optional[ServiceResolver] = None
    ) -> Any:
        try:
            parsed = self.args_schema.model_validate(arguments or {})
        except ValidationError as e:
            raise ToolArgumentError(self.name, e.errors()) from e

        kwargs = {field_name: getattr(parsed, field_name) for field_name in self.args_schema.model_fields}

        for param_name in self._request_params:
            kwargs[param_name] = request

        for param_name, annotation in self._service_params.items():
            if resolve_service is None:
                raise ABError(f"Tool '{self.name}' needs service '{param_name}' but no resolver is available.")
            kwargs[param_name] = resolve_service(annotation)

        result = self.func(**kwargs)
        if inspect.isawaitable(result):
            result = await result
        return result

    def __repr__(self) -> str:
        return f"ToolDefinition(name={self.name!r})"

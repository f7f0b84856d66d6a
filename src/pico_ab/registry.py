from typing import Any, Callable, Dict, Iterable, List, Optional
from pico_ioc import component
from .config import TreatmentConfig
from .exceptions import ToolRegistrationError
from .tools import ToolDefinition

@component
class ToolRegistry:
    def __init__(self):
        self._tools: Dict[str, ToolDefinition] = {}

    def register(self, definition: ToolDefinition) -> ToolDefinition:
        existing = self._tools.get(definition.name)
        if existing is not None and existing.func is not definition.func:
            raise ToolRegistrationError(f"Tool name '{definition.name}' is already registered.")
        self._tools[definition.name] = definition
        return definition

    def register_function(
        self,
        func: Callable[..., Any],
        name: Optional[str] = None,
        description: Optional[str] = None,
        inject: Optional[Iterable[str]] = None,
        treatment: Optional[TreatmentConfig] = None
    ) -> ToolDefinition:
        definition = ToolDefinition.from_function(
            func, name=name, description=description, inject=inject, treatment=treatment
        )
        return self.register(definition)

    def get_tool(self, name: str) -> Optional[ToolDefinition]:
        return self._tools.get(name)

    def get_tools(self) -> List[ToolDefinition]:
        return list(self._tools.values())

    def get_tool_names(self) -> List[str]:
        return list(self._tools.keys())

    def __contains__(self, name: object) -> bool:
        return name in self._tools

import inspect
import pkgutil
from importlib import import_module
from typing import Any, Iterable, List, Set
from pico_ioc import component
from .decorators import TOOL_META_KEY
from .registry import ToolRegistry
from .tools import ToolDefinition
from .logging import get_logger

logger = get_logger(__name__)

@component
class ToolScanner:
    def __init__(self, registry: ToolRegistry):
        self.registry = registry
        self._scanned_modules: Set[str] = set()

    def scan_modules(self, modules: Iterable[Any]) -> List[ToolDefinition]:
        found: List[ToolDefinition] = []
        for module in modules:
            found.extend(self.scan_module(module))
            if hasattr(module, "__path__"):
                for _, name, _ in pkgutil.walk_packages(module.__path__, module.__name__ + "."):
                    found.extend(self.scan_module(import_module(name)))
        return found

    def scan_module(self, module: Any) -> List[ToolDefinition]:
        mod_name = module.__name__
        if mod_name in self._scanned_modules:
            return []
        self._scanned_modules.add(mod_name)

        found: List[ToolDefinition] = []
        for name, obj in inspect.getmembers(module):
            if not callable(obj) or not hasattr(obj, TOOL_META_KEY):
                continue
            config = getattr(obj, TOOL_META_KEY)
            existing = self.registry.get_tool(config.name)
            if existing is not None and existing.func is obj:
                continue
            found.append(self.registry.register(ToolDefinition.from_function(obj)))

        if found:
            logger.debug("Registered %d tools from %s", len(found), mod_name)
        return found

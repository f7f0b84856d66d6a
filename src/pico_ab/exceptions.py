from typing import Any, List


class ABError(Exception):
    pass


class ToolRegistrationError(ABError):
    pass


class ToolNotFoundError(ABError):
    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(f"Tool '{tool_name}' is not registered.")


class ToolArgumentError(ABError):
    def __init__(self, tool_name: str, errors: List[Any]):
        self.tool_name = tool_name
        self.errors = errors
        super().__init__(f"Invalid arguments for tool '{tool_name}': {errors}")


class ToolExecutionError(ABError):
    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(f"Tool '{tool_name}' failed during execution.")

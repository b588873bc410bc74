from .balance_tool import CheckBalanceTool
from .base import DemosTool, ToolContext, ToolFailure, ToolResult
from .config_tool import ConfigTool
from .hash_tool import HashDataTool

__all__ = [
    "DemosTool",
    "ToolContext",
    "ToolFailure",
    "ToolResult",
    "ConfigTool",
    "HashDataTool",
    "CheckBalanceTool",
]

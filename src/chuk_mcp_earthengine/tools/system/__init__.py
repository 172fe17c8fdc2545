from .api import register_system_tools

__all__ = ["register_system_tools"]

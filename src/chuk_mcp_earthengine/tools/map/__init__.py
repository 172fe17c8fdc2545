from .api import register_map_tools

__all__ = ["register_map_tools"]

from .api import register_process_tools

__all__ = ["register_process_tools"]

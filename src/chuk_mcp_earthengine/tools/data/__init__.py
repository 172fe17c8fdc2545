from .api import register_data_tools

__all__ = ["register_data_tools"]

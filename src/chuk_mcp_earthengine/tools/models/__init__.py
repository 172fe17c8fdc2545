from .api import register_model_tools

__all__ = ["register_model_tools"]

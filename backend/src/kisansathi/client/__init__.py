from .functions_client import FunctionsClient

__all__ = ["FunctionsClient"]

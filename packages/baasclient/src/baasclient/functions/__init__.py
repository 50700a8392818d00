from baasclient.functions.client import FunctionsClient

__all__ = ["FunctionsClient"]

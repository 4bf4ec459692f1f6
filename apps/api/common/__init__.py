from .errors import map_operation_error, register_api_error_handlers

__all__ = ["map_operation_error", "register_api_error_handlers"]

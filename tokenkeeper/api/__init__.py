from .errors import register_error_handlers
from .routes import router

__all__ = ["router", "register_error_handlers"]

from .cors import cors_headers, cors_middleware

__all__ = ["cors_headers", "cors_middleware"]

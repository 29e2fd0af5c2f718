from .base import BaseSchema, RequestSchema

__all__ = ["BaseSchema", "RequestSchema"]

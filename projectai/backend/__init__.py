"""ProjectAI backend collaborator — typed query client over REST or SQL."""

from .client import BackendClient, create_backend
from .query import Filter, Order, Query

__all__ = ["BackendClient", "Filter", "Order", "Query", "create_backend"]

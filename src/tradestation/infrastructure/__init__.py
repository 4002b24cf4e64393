"""TradeStation infrastructure module

TokenStore - OAuth2 token ownership and single-flight refresh
RequestExecutor - Authenticated HTTP requests with a single auth retry
"""

from .auth import TokenStore
from .requests import RequestExecutor, build_http_client

__all__ = ["RequestExecutor", "TokenStore", "build_http_client"]

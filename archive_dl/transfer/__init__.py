"""
Transfer Layer.

This package downloads planned files concurrently, with resume support, and
keeps a reproducible record of each batch.
"""

from .downloader import Downloader, close_connection_pool
from .invoker import TransferInvoker, build_invocation

__all__ = ["Downloader", "TransferInvoker", "build_invocation", "close_connection_pool"]

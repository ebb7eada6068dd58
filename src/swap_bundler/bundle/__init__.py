from __future__ import annotations

from .assembler import BundleAssembler, BundleError, BundleErrorReason
from .encoder import encode_approve, encode_operations
from .operations import build_operations

__all__ = [
    "BundleAssembler",
    "BundleError",
    "BundleErrorReason",
    "build_operations",
    "encode_approve",
    "encode_operations",
]

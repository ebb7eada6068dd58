"""Safe transaction construction and submission."""

from .publisher import (
    build_safe_transaction,
    publish_bundle,
    publish_to_stdout,
    send_to_safe,
)

__all__ = [
    "build_safe_transaction",
    "publish_bundle",
    "publish_to_stdout",
    "send_to_safe",
]

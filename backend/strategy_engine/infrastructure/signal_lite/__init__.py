"""Signal Lite infrastructure package."""

from .signal_lite_client import SignalLiteClient

__all__ = ["SignalLiteClient"]

"""TON storage daemon integration and reconciliation workers."""

__version__ = "0.3.0"

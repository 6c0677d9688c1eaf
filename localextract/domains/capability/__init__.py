"""
Capability Domain - Host acceleration detection.
"""

from .host import CapabilityStatus, probe

__all__ = ["CapabilityStatus", "probe"]

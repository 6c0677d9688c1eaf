"""
Capability Probe - Detects the hardware acceleration the local engine needs.
"""

from __future__ import annotations

import os
import platform
import shutil
from typing import Literal

from pydantic import BaseModel

__all__ = ["CapabilityStatus", "probe"]

Backend = Literal["cuda", "rocm", "metal"]


class CapabilityStatus(BaseModel):
    """Whether hardware acceleration is available, and which kind."""

    supported: bool
    backend: Backend | None = None

    model_config = {"frozen": True}

    def __bool__(self) -> bool:
        return self.supported


def probe() -> CapabilityStatus:
    """
    Query the host for a GPU acceleration interface.

    Checked in order: NVIDIA CUDA, AMD ROCm, Apple Metal. Absence is a normal
    result, never an error.
    """
    if shutil.which("nvidia-smi") or os.path.exists("/dev/nvidia0"):
        return CapabilityStatus(supported=True, backend="cuda")
    if os.path.exists("/dev/kfd"):
        return CapabilityStatus(supported=True, backend="rocm")
    if platform.system() == "Darwin" and platform.machine() == "arm64":
        return CapabilityStatus(supported=True, backend="metal")
    return CapabilityStatus(supported=False)

"""
Domain models — Pydantic types for the bootstrap.

    from jmlboot.core.models import ToolchainConfig, StepReceipt, BootstrapReport
"""

from jmlboot.core.models.receipt import BootstrapReport, StepReceipt
from jmlboot.core.models.toolchain import (
    DEFAULT_URL_TEMPLATE,
    DEFAULT_VERSION,
    ORIGINAL_EXECUTABLE_SUFFIX,
    ToolchainConfig,
)

__all__ = [
    "BootstrapReport",
    "DEFAULT_URL_TEMPLATE",
    "DEFAULT_VERSION",
    "ORIGINAL_EXECUTABLE_SUFFIX",
    "StepReceipt",
    "ToolchainConfig",
]

"""ZeroVault.

Password-vault client whose plaintext never leaves the user's process.
"""
from .version import __version__
from .exposure import ClipboardExposure, ExposureWindow, run_exposure_loop
from .generator import generate_password, password_strength
from .service import VaultService
from .session import VaultSession

__all__ = (
    "__version__",
    "ClipboardExposure",
    "ExposureWindow",
    "run_exposure_loop",
    "generate_password",
    "password_strength",
    "VaultService",
    "VaultSession",
)

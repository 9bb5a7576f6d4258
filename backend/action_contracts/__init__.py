"""
action_contracts - declarative per-action request validation for Flask.

Declare a contract per action, finalize it into an immutable registry, and
let the plug validate every request before the view runs.
"""

from .contracts import *  # noqa: F401,F403
from .contracts import __all__ as _contracts_all
from .config import ContractSettings, EnforcementMode, load_settings

__version__ = '0.1.0'

__all__ = list(_contracts_all) + ['ContractSettings', 'EnforcementMode', 'load_settings']

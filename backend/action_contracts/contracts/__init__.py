"""
Action contract package.

Provides the contract builder/registry, the pydantic validation engine,
the dispatcher and the Flask plug.
"""

from .registry import (
    NOT_DECLARED,
    ParamSpec,
    ActionContract,
    ContractRegistry,
    ContractDefinitionError,
    DuplicateActionError,
    InvalidCallbackError,
    InvalidRuleError,
)
from .builder import ContractBuilder, build_registry
from .engine import Accepted, Rejected, ValidatorUnit, PydanticEngine, ROOT_ERROR_KEY
from .dispatch import PassThrough, CustomRecovery, DefaultFailure, dispatch
from .plug import ContractPlug, contract_guard

__all__ = [
    'NOT_DECLARED',
    'ParamSpec',
    'ActionContract',
    'ContractRegistry',
    'ContractDefinitionError',
    'DuplicateActionError',
    'InvalidCallbackError',
    'InvalidRuleError',
    'ContractBuilder',
    'build_registry',
    'Accepted',
    'Rejected',
    'ValidatorUnit',
    'PydanticEngine',
    'ROOT_ERROR_KEY',
    'PassThrough',
    'CustomRecovery',
    'DefaultFailure',
    'dispatch',
    'ContractPlug',
    'contract_guard',
]

"""
Contract Registry - the finalized, read-only set of action contracts of a handler.

Each action has:
- ParamSpec entries: per-parameter rule sets, opaque to the registry
- on_fail: optional recovery callback (request_context, action_name, errors)
- ValidatorUnit: built once at finalize time, bound to the action's params

Registries are produced by ContractBuilder.finalize() and never mutated
afterwards, so any number of requests can read them concurrently.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple, Union


class _Params(Enum):
    NOT_DECLARED = "not_declared"

    def __repr__(self):
        return "NOT_DECLARED"


# Sentinel for actions declared without params (exempt from validation)
NOT_DECLARED = _Params.NOT_DECLARED


@dataclass
class ContractDefinitionError(Exception):
    """Raised at build time when an action contract is misconfigured."""
    message: str
    action_name: Optional[str] = None

    def __str__(self):
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return {
            "message": self.message,
            "action": self.action_name,
        }


class DuplicateActionError(ContractDefinitionError):
    """Same action declared twice for one handler."""


class InvalidCallbackError(ContractDefinitionError):
    """on_fail is not callable or does not take 3 positional args."""


class InvalidRuleError(ContractDefinitionError):
    """A parameter rule set cannot be compiled by the validation engine."""


@dataclass(frozen=True)
class ParamSpec:
    """Validation rules for a single parameter."""
    name: str
    rules: Mapping[str, Any]

    # rules is a mappingproxy
    __hash__ = None

    def __post_init__(self):
        # Freeze rules so specs can be shared between requests
        object.__setattr__(self, 'rules', MappingProxyType(dict(self.rules)))


Params = Union[Mapping[str, ParamSpec], _Params]
OnFail = Callable[[Any, str, Dict[str, List[str]]], Any]


@dataclass(frozen=True)
class ActionContract:
    """Complete validation policy for one action."""
    action_name: str
    params: Params = NOT_DECLARED
    on_fail: Optional[OnFail] = None

    __hash__ = None

    def __post_init__(self):
        if self.params is not NOT_DECLARED:
            object.__setattr__(self, 'params', MappingProxyType(dict(self.params)))

    @property
    def has_params(self) -> bool:
        return self.params is not NOT_DECLARED

    def describe(self) -> Dict[str, Any]:
        """Plain-data view of the contract (rules are shown verbatim)."""
        params = None
        if self.has_params:
            params = {name: dict(spec.rules) for name, spec in self.params.items()}
        return {
            "action": self.action_name,
            "params": params,
            "on_fail": getattr(self.on_fail, '__qualname__', None) if self.on_fail else None,
        }


@dataclass(frozen=True, eq=False)
class ContractRegistry:
    """
    Immutable set of ActionContracts owned by one handler.

    Args:
        handler_name: Owner of the contracts (used in logs)
        contracts: Contracts in declaration order
        validators: ValidatorUnit per action that declared params
    """
    handler_name: str
    contracts: Tuple[ActionContract, ...] = ()
    validators: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'contracts', tuple(self.contracts))
        object.__setattr__(self, 'validators', MappingProxyType(dict(self.validators)))
        object.__setattr__(
            self, '_by_name', MappingProxyType({c.action_name: c for c in self.contracts})
        )

    def get(self, action_name: Optional[str]) -> Optional[ActionContract]:
        """Get contract for an action, None if the action was never declared."""
        if action_name is None:
            return None
        return self._by_name.get(action_name)

    def validator_for(self, action_name: str):
        """Get the ValidatorUnit bound to an action, None if exempt."""
        return self.validators.get(action_name)

    def actions(self) -> List[str]:
        """Get declared action names in declaration order."""
        return [c.action_name for c in self.contracts]

    def describe(self) -> List[Dict[str, Any]]:
        return [c.describe() for c in self.contracts]

    def dispatch(self, action_name, request_context, raw_params):
        """Shortcut for dispatch(registry, ...)."""
        from .dispatch import dispatch
        return dispatch(self, action_name, request_context, raw_params)

    def __contains__(self, action_name) -> bool:
        return action_name in self._by_name

    def __iter__(self) -> Iterator[ActionContract]:
        return iter(self.contracts)

    def __len__(self) -> int:
        return len(self.contracts)

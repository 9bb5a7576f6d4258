"""
Dispatcher - per-request decision between pass-through, custom recovery
and the default failure payload.

    Start -> PassThrough                       (undeclared / exempt action)
    Start -> Validating -> PassThrough         (params accepted)
                        -> CustomRecovery      (rejected, on_fail set)
                        -> DefaultFailure      (rejected, no on_fail)

Dispatch only reads the registry, so concurrent calls need no locking.
Rejections are returned as data; only engine failures raise.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from .engine import Accepted, Rejected
from .registry import ContractRegistry


logger = logging.getLogger('action_contracts.dispatch')


@dataclass(frozen=True)
class PassThrough:
    """Request may proceed with the context the validator accepted."""
    context: Any
    params: Optional[Mapping[str, Any]] = field(default=None, compare=False)


@dataclass(frozen=True)
class CustomRecovery:
    """Validation failed and on_fail produced this value."""
    value: Any


@dataclass(frozen=True)
class DefaultFailure:
    """Validation failed and no on_fail was set."""
    payload: Dict[str, Dict[str, Dict[str, List[str]]]]

    @property
    def action_name(self) -> str:
        return next(iter(self.payload))

    @property
    def errors(self) -> Dict[str, List[str]]:
        return self.payload[self.action_name]['validation']


DispatchResult = Union[PassThrough, CustomRecovery, DefaultFailure]


def dispatch(
    registry: ContractRegistry,
    action_name: Optional[str],
    request_context: Any,
    raw_params: Any,
) -> DispatchResult:
    """
    Validate raw params for an action against its registered contract.

    Args:
        registry: Finalized ContractRegistry
        action_name: Invoked action (None if the host could not resolve one)
        request_context: Opaque request object; on success the context
            returned by the validator is forwarded (PydanticEngine returns it unchanged)
        raw_params: Incoming params mapping

    Returns:
        PassThrough, CustomRecovery or DefaultFailure
    """
    contract = registry.get(action_name)
    if contract is None or not contract.has_params:
        return PassThrough(request_context)

    validator = registry.validator_for(action_name)
    outcome = validator.validate(raw_params, request_context=request_context)

    if isinstance(outcome, Accepted):
        return PassThrough(outcome.value, params=outcome.params)

    if isinstance(outcome, Rejected):
        logger.debug(
            f"Validation rejected: handler={registry.handler_name} action={action_name} "
            f"params={sorted(outcome.errors)}"
        )
        if contract.on_fail is not None:
            return CustomRecovery(contract.on_fail(request_context, action_name, outcome.errors))
        return DefaultFailure({action_name: {'validation': outcome.errors}})

    raise TypeError(
        f"Validator for `{action_name}` returned {type(outcome).__name__}, expected Accepted or Rejected"
    )

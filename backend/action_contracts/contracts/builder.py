"""
Contract builder - collects action declarations and produces a ContractRegistry.

Usage:
    def user_contracts(contracts):
        contracts.declare("show", params={"id": {"type": "string", "length": {"min": 5}}})
        contracts.declare("create", params={"name": {"type": "string"}}, on_fail=on_fail)

    USER_CONTRACTS = build_registry("users", user_contracts)

All misconfiguration is reported here, at initialization time:
- duplicate action -> DuplicateActionError
- bad on_fail callback -> InvalidCallbackError
- malformed param rules -> InvalidRuleError (from declare() or finalize())

Actions declared without params and handlers without any action are only
warned about; they pass every request through unvalidated.
"""

import logging
from collections.abc import Mapping
from typing import Any, Callable, Dict, List, Optional

from .engine import PydanticEngine
from .registry import (
    NOT_DECLARED,
    ActionContract,
    ContractDefinitionError,
    ContractRegistry,
    DuplicateActionError,
    InvalidCallbackError,
    InvalidRuleError,
    ParamSpec,
)
from .rules import accepts_positional


logger = logging.getLogger('action_contracts.builder')


class ContractBuilder:
    """
    Accumulates ActionContracts for one handler.

    Args:
        handler_name: Name of the handler the contracts belong to
        engine: Object with build(action_name, params) -> ValidatorUnit
            (defaults to PydanticEngine)
    """

    def __init__(self, handler_name: str, engine=None):
        self.handler_name = handler_name
        self.engine = engine or PydanticEngine()
        self._contracts: List[ActionContract] = []
        self._registry: Optional[ContractRegistry] = None

    def declare(self, action_name: str, params: Any = None, on_fail: Optional[Callable] = None) -> 'ContractBuilder':
        """
        Declare the params contract of one action.

        Args:
            action_name: Unique action name within this handler
            params: Mapping or list of (name, rules) pairs; empty/None means
                the action is never validated
            on_fail: Optional callback(request_context, action_name, errors)

        Returns:
            The builder, for chaining
        """
        if self._registry is not None:
            raise ContractDefinitionError(
                message=f"`{self.handler_name}` contracts are already finalized, cannot declare `{action_name}`",
                action_name=action_name,
            )

        if not isinstance(action_name, str) or not action_name:
            raise ContractDefinitionError(
                message=f"action name must be a non-empty string, got {action_name!r}",
            )

        if any(c.action_name == action_name for c in self._contracts):
            raise DuplicateActionError(
                message=f"`{action_name}` action is duplicated",
                action_name=action_name,
            )

        contract = ActionContract(
            action_name=action_name,
            params=self._normalize_params(action_name, params),
            on_fail=self._normalize_on_fail(action_name, on_fail),
        )
        self._contracts.append(contract)
        return self

    # Phoenix-style alias: contracts.action("show", params=...)
    action = declare

    def finalize(self) -> ContractRegistry:
        """
        Build ValidatorUnits and freeze the registry.

        Calling finalize() again returns the same registry.
        """
        if self._registry is not None:
            return self._registry

        if not self._contracts:
            logger.warning(
                f"A plug without an action definition: `{self.handler_name}` passes every request through",
                extra={"event": "contract_no_actions", "handler": self.handler_name},
            )

        validators = {}
        for contract in self._contracts:
            if contract.has_params:
                validators[contract.action_name] = self.engine.build(
                    contract.action_name, contract.params
                )

        self._registry = ContractRegistry(
            handler_name=self.handler_name,
            contracts=tuple(self._contracts),
            validators=validators,
        )
        logger.debug(
            f"Contracts finalized for `{self.handler_name}`: "
            f"{len(self._contracts)} action(s), {len(validators)} validated"
        )
        return self._registry

    def _normalize_params(self, action_name: str, params: Any):
        if isinstance(params, Mapping):
            items = list(params.items())
        elif isinstance(params, (list, tuple)):
            items = [_as_pair(action_name, entry, "param") for entry in params]
        else:
            items = []

        specs: Dict[str, ParamSpec] = {}
        for name, rules in items:
            if not isinstance(name, str) or not name:
                raise InvalidRuleError(
                    message=f"`{action_name}` action has an invalid param name {name!r}",
                    action_name=action_name,
                )
            rules = _normalize_rules(action_name, name, rules)
            if not rules:
                logger.warning(
                    f"`{action_name}` action's `{name}` param has no rules and is ignored",
                    extra={"event": "contract_empty_rules", "handler": self.handler_name, "action": action_name},
                )
                continue
            specs[name] = ParamSpec(name=name, rules=rules)

        if not specs:
            logger.warning(
                f"`{action_name}` action has been defined without params specification "
                f"and will be omitted during the validation",
                extra={"event": "contract_no_params", "handler": self.handler_name, "action": action_name},
            )
            return NOT_DECLARED
        return specs

    def _normalize_on_fail(self, action_name: str, on_fail: Any):
        if on_fail is None:
            return None
        if not callable(on_fail):
            raise InvalidCallbackError(
                message=f"`{action_name}` action's `on_fail` callback is not a function",
                action_name=action_name,
            )
        if not accepts_positional(on_fail, 3):
            raise InvalidCallbackError(
                message=f"`{action_name}` action's `on_fail` callback should have arity = 3",
                action_name=action_name,
            )
        return on_fail


def _as_pair(action_name: str, entry: Any, what: str):
    if not isinstance(entry, (list, tuple)) or len(entry) != 2:
        raise InvalidRuleError(
            message=f"`{action_name}` action has a malformed {what} entry {entry!r}, expected a (key, value) pair",
            action_name=action_name,
        )
    return entry[0], entry[1]


def _normalize_rules(action_name: str, name: str, rules: Any) -> Dict[str, Any]:
    if isinstance(rules, Mapping):
        return dict(rules)
    if isinstance(rules, (list, tuple)):
        return dict(_as_pair(action_name, entry, f"`{name}` rule") for entry in rules)
    raise InvalidRuleError(
        message=f"`{action_name}` action's `{name}` param rules must be a mapping or a list of pairs",
        action_name=action_name,
    )


def build_registry(handler_name: str, declare_actions: Callable[[ContractBuilder], Any], engine=None) -> ContractRegistry:
    """
    Run declarations against a fresh builder and return the finalized registry.

    Args:
        handler_name: Name of the handler owning the contracts
        declare_actions: Function receiving the builder and declaring actions
        engine: Optional validation engine (defaults to PydanticEngine)
    """
    builder = ContractBuilder(handler_name, engine=engine)
    declare_actions(builder)
    return builder.finalize()

"""
Validation engine - binds an action's param specs to a pydantic model.

One ValidatorUnit is synthesized per action at finalize time:

    unit = PydanticEngine().build("show", {"id": ParamSpec("id", {"type": "string"})})
    unit.validate({"id": "abc"}, request_context=request)

The request context is handed to pydantic as validation context, so `func`
rules can read it but no rule can overwrite it.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Union

from pydantic import BaseModel, ConfigDict, ValidationError, create_model

from .registry import ParamSpec
from .rules import compile_param


# Key for errors not tied to a single param (e.g. params not a mapping)
ROOT_ERROR_KEY = '_params'


@dataclass(frozen=True)
class Accepted:
    """Params passed validation; value is the (unchanged) request context."""
    value: Any
    params: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Rejected:
    """Params failed validation; errors maps param name -> messages."""
    errors: Dict[str, List[str]]


ValidationOutcome = Union[Accepted, Rejected]


class BaseActionParams(BaseModel):
    """
    Base model for synthesized per-action param models.

    - frozen=True: validated params are read-only
    - extra='ignore': undeclared request params are not an error
    - fields are populated by alias (the declared param name)
    """
    model_config = ConfigDict(
        frozen=True,
        extra='ignore',
        populate_by_name=False,
    )


class ValidatorUnit:
    """Validation function bound to one action's param specs."""

    def __init__(self, action_name: str, model: type, field_names: Dict[str, str]):
        self.action_name = action_name
        self.model = model
        # model field name -> declared param name
        self._param_names = dict(field_names)

    @property
    def param_names(self) -> List[str]:
        return list(self._param_names.values())

    def validate(self, raw_params: Any, request_context: Any = None) -> ValidationOutcome:
        """
        Validate raw request params.

        Only pydantic ValidationError is turned into Rejected; anything else
        raised by the engine or a user rule propagates to the caller.
        """
        if raw_params is None:
            raw_params = {}
        elif isinstance(raw_params, Mapping):
            raw_params = dict(raw_params)
        try:
            validated = self.model.model_validate(
                raw_params,
                context={'request_context': request_context, 'action': self.action_name},
            )
        except ValidationError as exc:
            return Rejected(errors=self._error_map(exc))

        params = {
            self._param_names[name]: value
            for name, value in validated
        }
        return Accepted(value=request_context, params=params)

    def _error_map(self, exc: ValidationError) -> Dict[str, List[str]]:
        aliases = set(self._param_names.values())
        errors: Dict[str, List[str]] = {}
        for error in exc.errors(include_url=False):
            loc = error.get('loc') or ()
            if loc and loc[0] in aliases:
                key = loc[0]
            elif loc and loc[0] in self._param_names:
                key = self._param_names[loc[0]]
            else:
                key = ROOT_ERROR_KEY
            errors.setdefault(key, []).append(error['msg'])
        return errors

    def __repr__(self):
        return f"<ValidatorUnit {self.action_name} params={self.param_names}>"


class PydanticEngine:
    """Builds ValidatorUnits backed by dynamically created pydantic models."""

    def build(self, action_name: str, params: Mapping[str, ParamSpec]) -> ValidatorUnit:
        """
        Compile param specs into a ValidatorUnit.

        Raises:
            InvalidRuleError: If a rule set cannot be compiled
        """
        definitions = {}
        field_names = {}
        for index, (name, spec) in enumerate(params.items()):
            # Param names may not be valid identifiers; fields are addressed by alias
            field_name = f"p{index}"
            definitions[field_name] = compile_param(action_name, spec)
            field_names[field_name] = name

        model = create_model(
            f"{_model_prefix(action_name)}Params",
            __base__=BaseActionParams,
            **definitions,
        )
        return ValidatorUnit(action_name, model, field_names)


def _model_prefix(action_name: str) -> str:
    words = ''.join(c if c.isalnum() else ' ' for c in action_name).split()
    return ''.join(w.capitalize() for w in words) or 'Action'

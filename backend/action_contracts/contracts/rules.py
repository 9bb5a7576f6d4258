"""
Rule compilers - turn a parameter's rule set into a pydantic field.

Supported rule kinds:
- type: "string" | "integer" | "float" | "number" | "boolean" | "list" | "map" | "any"
- required / default / allow_nil: presence and nullability
- length: {"min", "max", "is"} for strings, lists and maps
- numericality: {"gt", "gte", "lt", "lte", "eq"} (long names accepted too)
- in / not_in: allowed / forbidden values
- format: regex the whole string must match
- coerce_with: callable(value) applied before every check
- func: callable(value) or callable(value, request_context) -> True | False | "error"

Type checks are strict: HTTP params arrive as strings, so "1" is not an integer
unless a coerce_with rule converts it first.
"""

import inspect
import re
from typing import Annotated, Any, Callable, Dict, List, Optional, Tuple

from pydantic import AfterValidator, BeforeValidator, Field, ValidationInfo
from pydantic.fields import FieldInfo
from pydantic_core import PydanticCustomError

from .registry import InvalidRuleError, ParamSpec


TYPE_MAP = {
    'string': str,
    'integer': int,
    'float': float,
    'number': float,
    'boolean': bool,
    'list': list,
    'map': dict,
    'any': Any,
}

NUMERICALITY_ALIASES = {
    'greater_than': 'gt',
    'greater_than_or_equal_to': 'gte',
    'less_than': 'lt',
    'less_than_or_equal_to': 'lte',
    'equal_to': 'eq',
}

NUMERICALITY_CHECKS = {
    'gt': (lambda v, bound: v > bound, "must be greater than {bound}"),
    'gte': (lambda v, bound: v >= bound, "must be greater than or equal to {bound}"),
    'lt': (lambda v, bound: v < bound, "must be less than {bound}"),
    'lte': (lambda v, bound: v <= bound, "must be less than or equal to {bound}"),
    'eq': (lambda v, bound: v == bound, "must be equal to {bound}"),
}

RULE_KINDS = {
    'type', 'required', 'default', 'allow_nil', 'length', 'numericality',
    'in', 'not_in', 'format', 'coerce_with', 'func',
}

_MISSING = object()


def compile_param(action_name: str, spec: ParamSpec) -> Tuple[Any, FieldInfo]:
    """
    Build the (annotation, FieldInfo) pair for one parameter.

    Args:
        action_name: Owning action (for error reporting)
        spec: ParamSpec with the raw rule set

    Returns:
        Tuple usable as a pydantic create_model field definition

    Raises:
        InvalidRuleError: Unknown rule kind or malformed rule config
    """
    rules = spec.rules

    unknown = sorted(set(rules) - RULE_KINDS)
    if unknown:
        raise InvalidRuleError(
            message=f"`{action_name}` action's `{spec.name}` param has unknown rules: {', '.join(unknown)}",
            action_name=action_name,
        )

    def fail(msg: str):
        return InvalidRuleError(
            message=f"`{action_name}` action's `{spec.name}` param: {msg}",
            action_name=action_name,
        )

    type_name = rules.get('type', 'any')
    if type_name not in TYPE_MAP:
        raise fail(f"unsupported type {type_name!r}")
    base_type = TYPE_MAP[type_name]

    for flag in ('required', 'allow_nil'):
        if flag in rules and not isinstance(rules[flag], bool):
            raise fail(f"`{flag}` expects True or False")

    default = rules.get('default', _MISSING)
    required = rules.get('required', True) and default is _MISSING
    allow_nil = rules.get('allow_nil', False) or not required

    validators: List[Any] = []

    coerce_with = rules.get('coerce_with')
    if coerce_with is not None:
        if not callable(coerce_with):
            raise fail("`coerce_with` is not callable")
        validators.append(BeforeValidator(_skip_nil(lambda value: coerce_with(value))))

    if 'length' in rules:
        validators.append(AfterValidator(_length_check(rules['length'], fail)))
    if 'numericality' in rules:
        validators.append(AfterValidator(_numericality_check(rules['numericality'], fail)))
    if 'in' in rules:
        validators.append(AfterValidator(_inclusion_check(rules['in'], fail, exclude=False)))
    if 'not_in' in rules:
        validators.append(AfterValidator(_inclusion_check(rules['not_in'], fail, exclude=True)))
    if 'format' in rules:
        validators.append(AfterValidator(_format_check(rules['format'], fail)))
    if 'func' in rules:
        validators.append(AfterValidator(_func_check(rules['func'], fail)))

    annotation = Optional[base_type] if allow_nil else base_type
    if validators:
        annotation = Annotated[(annotation, *validators)]

    field_kwargs: Dict[str, Any] = {'alias': spec.name}
    if base_type is not Any:
        field_kwargs['strict'] = True
    if not required:
        field_kwargs['default'] = None if default is _MISSING else default

    return annotation, Field(**field_kwargs)


def _skip_nil(check: Callable[[Any], Any]) -> Callable[[Any], Any]:
    def wrapper(value):
        if value is None:
            return value
        return check(value)
    return wrapper


def _length_check(config: Any, fail) -> Callable[[Any], Any]:
    if not isinstance(config, dict) or not config or set(config) - {'min', 'max', 'is'}:
        raise fail("`length` expects a dict with min/max/is")
    for key, n in config.items():
        if isinstance(n, bool) or not isinstance(n, int) or n < 0:
            raise fail(f"`length` {key} must be a non-negative integer, got {n!r}")

    @_skip_nil
    def check(value):
        try:
            size = len(value)
        except TypeError:
            raise PydanticCustomError('length', "length is not applicable to {kind}",
                                      {'kind': type(value).__name__}) from None
        if 'is' in config and size != config['is']:
            raise PydanticCustomError('length', "length must be equal to {n}", {'n': config['is']})
        if 'min' in config and size < config['min']:
            raise PydanticCustomError('length', "length must be greater than or equal to {n}",
                                      {'n': config['min']})
        if 'max' in config and size > config['max']:
            raise PydanticCustomError('length', "length must be less than or equal to {n}",
                                      {'n': config['max']})
        return value

    return check


def _numericality_check(config: Any, fail) -> Callable[[Any], Any]:
    if not isinstance(config, dict) or not config:
        raise fail("`numericality` expects a non-empty dict")
    bounds = {}
    for key, bound in config.items():
        key = NUMERICALITY_ALIASES.get(key, key)
        if key not in NUMERICALITY_CHECKS:
            raise fail(f"unknown numericality check {key!r}")
        if isinstance(bound, bool) or not isinstance(bound, (int, float)):
            raise fail(f"numericality {key} bound must be a number, got {bound!r}")
        bounds[key] = bound

    @_skip_nil
    def check(value):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise PydanticCustomError('numericality', "must be a number")
        for key, bound in bounds.items():
            predicate, message = NUMERICALITY_CHECKS[key]
            if not predicate(value, bound):
                raise PydanticCustomError('numericality', message, {'bound': bound})
        return value

    return check


def _inclusion_check(config: Any, fail, exclude: bool) -> Callable[[Any], Any]:
    if isinstance(config, (str, bytes)) or not hasattr(config, '__contains__'):
        raise fail(f"`{'not_in' if exclude else 'in'}` expects a collection")
    allowed = list(config)

    @_skip_nil
    def check(value):
        if exclude and value in allowed:
            raise PydanticCustomError('not_in', "must not be in {values}", {'values': allowed})
        if not exclude and value not in allowed:
            raise PydanticCustomError('in', "must be one of {values}", {'values': allowed})
        return value

    return check


def _format_check(config: Any, fail) -> Callable[[Any], Any]:
    try:
        pattern = re.compile(config)
    except (TypeError, re.error) as e:
        raise fail(f"`format` is not a valid regex: {e}")

    @_skip_nil
    def check(value):
        if not isinstance(value, str) or not pattern.fullmatch(value):
            raise PydanticCustomError('format', "has invalid format")
        return value

    return check


def _func_check(func: Any, fail):
    if not callable(func):
        raise fail("`func` is not callable")
    wants_context = accepts_positional(func, 2)

    def check(value, info: ValidationInfo):
        if value is None:
            return value
        if wants_context:
            request_context = (info.context or {}).get('request_context')
            result = func(value, request_context)
        else:
            result = func(value)
        if result is True:
            return value
        if isinstance(result, str) and result:
            raise PydanticCustomError('func', "{reason}", {'reason': result})
        raise PydanticCustomError('func', "is invalid")

    return check


def accepts_positional(func: Callable, count: int) -> bool:
    """
    Check whether func can be called with exactly `count` positional args.

    Callables whose signature cannot be inspected (some builtins) are
    accepted as-is.
    """
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        return True
    try:
        signature.bind(*range(count))
    except TypeError:
        return False
    return True

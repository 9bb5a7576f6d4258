"""
Flask plug - runs contract dispatch in front of views.

Usage (whole app or blueprint, action = view function name):
    users_bp = Blueprint("users", __name__)
    ContractPlug(USER_CONTRACTS).init_app(users_bp)

Usage (single view):
    @users_bp.route("/users/<id>")
    @contract_guard(USER_CONTRACTS, "show")
    def show(id):
        ...

For each request the plug:
1. Resolves the action name (view function name by default)
2. Collects raw params (path args + query string + JSON body)
3. Dispatches against the registry
4. PassThrough -> view runs, validated params on g.validated_params
   CustomRecovery -> on_fail's return value becomes the response
       (None or the request itself lets the view run)
   DefaultFailure -> VALIDATION_FAILED error envelope
       (logged and let through in warn mode)
"""

import functools
import logging
from typing import Any, Callable, Dict, Optional

from flask import Flask, Blueprint, current_app, g, request

from ..config import ContractSettings, EnforcementMode, load_settings
from ..middleware.error_envelope import make_error_response
from ..middleware.request_id import get_request_id
from .dispatch import CustomRecovery, DefaultFailure, PassThrough, dispatch
from .registry import ContractRegistry


logger = logging.getLogger('action_contracts.plug')

JSON_METHODS = ('POST', 'PUT', 'PATCH', 'DELETE')


def default_action_name(req) -> Optional[str]:
    """View function name of the matched endpoint ("users.show" -> "show")."""
    if not req.endpoint:
        return None
    return req.endpoint.rsplit('.', 1)[-1]


class ContractPlug:
    """
    Runs a ContractRegistry against incoming Flask requests.

    Args:
        registry: Finalized ContractRegistry
        app: Optional Flask app or Blueprint to attach to immediately
        settings: ContractSettings (default: env + app.config at request time)
        action_resolver: Function request -> action name
    """

    def __init__(
        self,
        registry: ContractRegistry,
        app=None,
        settings: Optional[ContractSettings] = None,
        action_resolver: Optional[Callable[[Any], Optional[str]]] = None,
    ):
        self.registry = registry
        self.settings = settings
        self.action_resolver = action_resolver or default_action_name
        if app is not None:
            self.init_app(app)

    def init_app(self, app) -> None:
        """Register the plug as a before_request hook on a Flask app or Blueprint."""
        if not isinstance(app, (Flask, Blueprint)):
            raise TypeError(f"ContractPlug needs a Flask app or Blueprint, got {type(app).__name__}")
        app.before_request(self.run)

    def run(self):
        """Dispatch the current request; returns a response to short-circuit, else None."""
        settings = self.settings or load_settings(current_app.config)
        action_name = self.action_resolver(request)
        request_context = request._get_current_object()

        result = dispatch(
            self.registry,
            action_name,
            request_context,
            collect_raw_params(settings.include_json_body),
        )
        return self._respond(result, action_name, request_context, settings)

    def _respond(self, result, action_name, request_context, settings: ContractSettings):
        g.validated_params = {}

        if isinstance(result, PassThrough):
            if result.params is not None:
                g.validated_params = dict(result.params)
            if result.params is None and settings.log_passthrough:
                logger.debug(f"Passing through unvalidated: handler={self.registry.handler_name} action={action_name}")
            return None

        if isinstance(result, CustomRecovery):
            if result.value is None or result.value is request_context:
                return None
            return result.value

        if isinstance(result, DefaultFailure):
            _log_failure(self.registry.handler_name, result, settings.mode)
            if settings.mode == EnforcementMode.WARN:
                g.contract_errors = result.errors
                return None
            return make_error_response(
                code="VALIDATION_FAILED",
                message=f"Invalid params for `{result.action_name}`",
                status_code=settings.failure_status,
                details=result.payload,
            )

        raise TypeError(f"Unexpected dispatch result {type(result).__name__}")


def contract_guard(registry: ContractRegistry, action_name: Optional[str] = None,
                   settings: Optional[ContractSettings] = None):
    """
    Decorator that enforces one action's contract on a view.

    Args:
        registry: Finalized ContractRegistry
        action_name: Contract action (defaults to the view function name)
        settings: Optional ContractSettings
    """
    def decorator(fn: Callable) -> Callable:
        name = action_name or fn.__name__
        plug = ContractPlug(registry, settings=settings, action_resolver=lambda req: name)

        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            response = plug.run()
            if response is not None:
                return response
            return fn(*args, **kwargs)

        return wrapper
    return decorator


def collect_raw_params(include_json_body: bool = True) -> Dict[str, Any]:
    """Collect params from path args, query string and JSON body (body wins)."""
    params: Dict[str, Any] = dict(request.view_args or {})

    for key in request.args:
        values = request.args.getlist(key)
        params[key] = values[0] if len(values) == 1 else values

    if include_json_body and request.method in JSON_METHODS and request.is_json:
        body = request.get_json(silent=True)
        if isinstance(body, dict):
            params.update(body)
        elif body is not None:
            params['_json'] = body

    return params


def _log_failure(handler_name: str, failure: DefaultFailure, mode: EnforcementMode) -> None:
    """Log a default validation failure for observability."""
    logger.warning(
        f"Contract validation failed: handler={handler_name} action={failure.action_name} "
        f"mode={mode.value} params={sorted(failure.errors)} request_id={get_request_id()}",
        extra={
            "event": "contract_validation_failed",
            "handler": handler_name,
            "action": failure.action_name,
            "request_id": get_request_id(),
        }
    )

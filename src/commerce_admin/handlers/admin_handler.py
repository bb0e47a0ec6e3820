"""
Admin Handler - Lambda function for the commerce admin API.

This module implements the handler layer for the admin write operations:
updating a customer, updating a return reason and confirming an order edit.
Every route validates its input, runs one unit of work inside a transaction,
reloads the entity with its projection and returns it in a single-key envelope.
"""

import functools
import json
from typing import Any, Dict, Optional, Type, TypeVar

from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext
from pydantic import BaseModel, ValidationError

from commerce_admin.dal.projection import FindConfig
from commerce_admin.handlers.models.env_vars import get_handler_env_vars
from commerce_admin.handlers.utils.dependencies import get_dependencies
from commerce_admin.handlers.utils.errors import (
    BaseServiceError,
    ErrorCategory,
    ErrorContext,
    ErrorSeverity,
    InvalidDataError,
    RequestValidationError,
    UnauthorizedError,
    create_api_response,
    create_error_context,
    format_error_response,
    get_http_status_code,
    log_error_metrics,
)
from commerce_admin.handlers.utils.identity import resolve_actor_id
from commerce_admin.handlers.utils.observability import logger, metrics, tracer
from commerce_admin.handlers.utils.rest_api_resolver import (
    CUSTOMERS_PATH,
    ORDER_EDITS_PATH,
    RETURN_REASONS_PATH,
    app,
)
from commerce_admin.logic.customer_service import DEFAULT_ADMIN_CUSTOMER_RELATIONS
from commerce_admin.logic.order_edit_service import (
    DEFAULT_ADMIN_ORDER_EDIT_FIELDS,
    DEFAULT_ADMIN_ORDER_EDIT_RELATIONS,
)
from commerce_admin.logic.return_reason_service import (
    DEFAULT_ADMIN_RETURN_REASON_FIELDS,
    DEFAULT_ADMIN_RETURN_REASON_RELATIONS,
)
from commerce_admin.models.input import FindParams, UpdateCustomerRequest, UpdateReturnReasonRequest
from commerce_admin.models.output import AdminCustomersRes, AdminOrderEditsRes, AdminReturnReasonsRes

ModelT = TypeVar('ModelT', bound=BaseModel)


def handle_service_errors(func):
    """Decorator to handle service errors and convert to HTTP responses."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except BaseServiceError as e:
            log_error_metrics(e)

            error_response = format_error_response(
                error=e,
                include_details=get_handler_env_vars().error_details_enabled,
            )

            return create_api_response(
                status_code=get_http_status_code(e),
                body=json.dumps(error_response),
            )

        except Exception as e:
            logger.exception("Unexpected error in handler", extra={
                "error": str(e),
                "function_name": func.__name__,
            })

            metrics.add_metric(name="UnexpectedError", unit=MetricUnit.Count, value=1)

            unexpected_error = BaseServiceError(
                message="An unexpected error occurred",
                error_code="INTERNAL_SERVER_ERROR",
                severity=ErrorSeverity.CRITICAL,
                category=ErrorCategory.INFRASTRUCTURE,
            )

            return create_api_response(
                status_code=500,
                body=json.dumps(format_error_response(unexpected_error)),
            )

    return wrapper


def _request_context(operation: str, resource_id: Optional[str] = None, user_id: Optional[str] = None) -> ErrorContext:
    request_context = app.current_event.request_context
    request_id = request_context.request_id if request_context else "unknown"
    return create_error_context(
        request_id=request_id or "unknown",
        operation=operation,
        user_id=user_id,
        resource_id=resource_id,
    )


def _field_errors(error: ValidationError) -> list:
    return [
        {"field": ".".join(str(part) for part in err["loc"]) or "body", "message": err["msg"]}
        for err in error.errors()
    ]


def parse_body(model: Type[ModelT], context: ErrorContext) -> ModelT:
    """
    Validate the JSON request body against ``model``.

    Raises:
        RequestValidationError: If the body is not a JSON object or fails validation
    """
    try:
        body = json.loads(app.current_event.body or "{}")
    except json.JSONDecodeError:
        raise RequestValidationError(message="Invalid JSON in request body", context=context)

    if not isinstance(body, dict):
        raise RequestValidationError(message="Request body must be a JSON object", context=context)

    try:
        return model.model_validate(body)
    except ValidationError as e:
        metrics.add_metric(name="ValidationError", unit=MetricUnit.Count, value=1)
        raise RequestValidationError(
            message="Request validation failed",
            field_errors=_field_errors(e),
            context=context,
        )


def parse_query(context: ErrorContext) -> FindParams:
    """
    Validate the query string against :class:`FindParams`.

    Raises:
        RequestValidationError: If an unknown query parameter is present
    """
    query_params = app.current_event.query_string_parameters or {}
    try:
        return FindParams.model_validate(query_params)
    except ValidationError as e:
        metrics.add_metric(name="ValidationError", unit=MetricUnit.Count, value=1)
        raise RequestValidationError(
            message="Invalid query parameters",
            field_errors=_field_errors(e),
            context=context,
        )


@app.post(f"{CUSTOMERS_PATH}/<customer_id>")
@tracer.capture_method
@handle_service_errors
def update_customer(customer_id: str):
    """
    Update a customer.

    Args:
        customer_id: Customer identifier

    Returns:
        The updated customer, with the relations named in ``expand`` or the default ones
    """
    logger.info("Update customer request received", extra={"customer_id": customer_id})

    context = _request_context(operation="update_customer", resource_id=customer_id)
    update_request = parse_body(UpdateCustomerRequest, context)
    find_params = parse_query(context)

    tracer.put_annotation("customer_id", customer_id)

    deps = get_dependencies()
    customer = deps.customer_service.retrieve(customer_id, context=context)

    if update_request.email is not None and customer.get('has_account'):
        raise InvalidDataError(
            message="Email cannot be changed when the user has registered their account",
            context=context,
        )

    with deps.transaction_manager.transaction(context=context) as txn:
        deps.customer_service.update(customer_id, update_request, transaction=txn, context=context)

    config = FindConfig.create(
        select=find_params.selected_fields,
        relations=find_params.expand_relations or DEFAULT_ADMIN_CUSTOMER_RELATIONS,
    )
    customer = deps.customer_service.retrieve(customer_id, config=config, context=context)

    logger.info("Customer updated successfully", extra={"customer_id": customer_id})

    return create_api_response(
        status_code=200,
        body=AdminCustomersRes(customer=customer).model_dump_json(),
    )


@app.post(f"{RETURN_REASONS_PATH}/<return_reason_id>")
@tracer.capture_method
@handle_service_errors
def update_return_reason(return_reason_id: str):
    """
    Update a return reason.

    Args:
        return_reason_id: Return reason identifier

    Returns:
        The updated return reason with its parent and children
    """
    logger.info("Update return reason request received", extra={"return_reason_id": return_reason_id})

    context = _request_context(operation="update_return_reason", resource_id=return_reason_id)
    update_request = parse_body(UpdateReturnReasonRequest, context)
    parse_query(context)

    tracer.put_annotation("return_reason_id", return_reason_id)

    deps = get_dependencies()
    with deps.transaction_manager.transaction(context=context) as txn:
        deps.return_reason_service.update(return_reason_id, update_request, transaction=txn, context=context)

    config = FindConfig.create(
        select=DEFAULT_ADMIN_RETURN_REASON_FIELDS,
        relations=DEFAULT_ADMIN_RETURN_REASON_RELATIONS,
    )
    return_reason = deps.return_reason_service.retrieve(return_reason_id, config=config, context=context)

    logger.info("Return reason updated successfully", extra={"return_reason_id": return_reason_id})

    return create_api_response(
        status_code=200,
        body=AdminReturnReasonsRes(return_reason=return_reason).model_dump_json(),
    )


@app.post(f"{ORDER_EDITS_PATH}/<order_edit_id>/confirm")
@tracer.capture_method
@handle_service_errors
def confirm_order_edit(order_edit_id: str):
    """
    Confirm an order edit on behalf of the authenticated user.

    Args:
        order_edit_id: Order edit identifier

    Returns:
        The confirmed order edit with its items, changes and totals
    """
    logger.info("Confirm order edit request received", extra={"order_edit_id": order_edit_id})

    env_vars = get_handler_env_vars()
    authorizer = app.current_event.raw_event.get("requestContext", {}).get("authorizer")
    actor_id = resolve_actor_id(
        authorizer,
        primary_claim=env_vars.ACTOR_ID_CLAIM,
        fallback_claim=env_vars.ACTOR_ID_FALLBACK_CLAIM,
    )

    context = _request_context(operation="confirm_order_edit", resource_id=order_edit_id, user_id=actor_id)
    if not actor_id:
        raise UnauthorizedError(message="No acting user on the request", context=context)

    tracer.put_annotation("order_edit_id", order_edit_id)
    tracer.put_annotation("actor_id", actor_id)

    deps = get_dependencies()
    with deps.transaction_manager.transaction(context=context) as txn:
        deps.order_edit_service.confirm(order_edit_id, confirmed_by=actor_id, transaction=txn, context=context)

    config = FindConfig.create(
        select=DEFAULT_ADMIN_ORDER_EDIT_FIELDS,
        relations=DEFAULT_ADMIN_ORDER_EDIT_RELATIONS,
    )
    order_edit = deps.order_edit_service.retrieve(order_edit_id, config=config, context=context)
    order_edit = deps.order_edit_service.decorate_totals(order_edit, context=context)

    logger.info("Order edit confirmed successfully", extra={
        "order_edit_id": order_edit_id,
        "confirmed_by": actor_id,
    })

    return create_api_response(
        status_code=200,
        body=AdminOrderEditsRes(order_edit=order_edit).model_dump_json(),
    )


@tracer.capture_lambda_handler
@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    """
    Main Lambda handler function.

    Args:
        event: Lambda event payload
        context: Lambda context object

    Returns:
        API Gateway response
    """
    try:
        metrics.add_metric(name="RequestCount", unit=MetricUnit.Count, value=1)
        tracer.put_annotation("service", "commerce-admin")

        return app.resolve(event, context)

    except Exception as e:
        metrics.add_metric(name="RequestError", unit=MetricUnit.Count, value=1)

        logger.exception("Unhandled error in lambda handler", extra={"error": str(e)})

        error_response = {
            "error": {
                "code": "INTERNAL_SERVER_ERROR",
                "message": "An unexpected error occurred",
                "error_id": context.aws_request_id,
            }
        }

        return {
            "statusCode": 500,
            "headers": {"Content-Type": "application/json"},
            "body": json.dumps(error_response),
        }

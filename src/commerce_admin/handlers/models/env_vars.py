"""
Environment variable models for type-safe configuration.

This module defines the Pydantic model for the environment variables used by the
admin API handler, parsed and cached with aws-lambda-env-modeler.
"""

from typing import Annotated, Optional

from aws_lambda_env_modeler import BaseModel, get_environment_variables
from pydantic import Field


class AdminHandlerEnvVars(BaseModel):
    """Environment variables for the admin API handler."""

    # DynamoDB single table holding customers, return reasons, orders and order edits
    TABLE_NAME: Annotated[str, Field(
        description='DynamoDB table name for admin entities',
        min_length=1
    )]

    AWS_REGION: Annotated[str, Field(
        default='us-east-1',
        description='AWS region for service deployment'
    )] = 'us-east-1'

    ENVIRONMENT: Annotated[str, Field(
        default='dev',
        description='Deployment environment name',
        pattern=r'^(dev|test|staging|prod)$'
    )] = 'dev'

    # Local DynamoDB endpoint, e.g. http://localhost:8000
    DYNAMODB_ENDPOINT: Annotated[Optional[str], Field(
        default=None,
        description='DynamoDB endpoint override for local testing'
    )] = None

    # Domain events are not published when unset
    EVENT_BUS_NAME: Annotated[Optional[str], Field(
        default=None,
        description='EventBridge bus receiving domain events'
    )] = None

    ACTOR_ID_CLAIM: Annotated[str, Field(
        default='id',
        description='Authorizer claim holding the acting user id',
        min_length=1
    )] = 'id'

    ACTOR_ID_FALLBACK_CLAIM: Annotated[str, Field(
        default='userId',
        description='Claim read when the primary actor claim is absent',
        min_length=1
    )] = 'userId'

    ERROR_DETAILS_ENABLED: Annotated[str, Field(
        default='false',
        description='Include operation details in error responses (true/false)',
        pattern=r'^(true|false)$'
    )] = 'false'

    POWERTOOLS_SERVICE_NAME: Annotated[str, Field(
        default='commerce-admin',
        description='Service name for AWS Powertools'
    )] = 'commerce-admin'

    LOG_LEVEL: Annotated[str, Field(
        default='INFO',
        description='Log level for application logging',
        pattern=r'^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$'
    )] = 'INFO'

    @property
    def error_details_enabled(self) -> bool:
        """Check if error responses should carry operation details."""
        return self.ERROR_DETAILS_ENABLED.lower() == 'true'


def get_handler_env_vars() -> AdminHandlerEnvVars:
    """
    Get typed environment variables for the admin handler.

    Returns:
        Validated environment variables model instance
    """
    return get_environment_variables(model=AdminHandlerEnvVars)

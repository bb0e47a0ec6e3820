"""
REST API resolver utility for the admin Lambda handler.

This module provides the configured API Gateway REST resolver shared by the
admin routes.
"""

from aws_lambda_powertools.event_handler import APIGatewayRestResolver, CORSConfig

# API path constants
CUSTOMERS_PATH = '/admin/customers'
RETURN_REASONS_PATH = '/admin/return-reasons'
ORDER_EDITS_PATH = '/admin/order-edits'

# Configure CORS
cors_config = CORSConfig(
    allow_origin="*",
    max_age=600,
    allow_headers=["content-type", "authorization"],
)

# Request bodies are validated with the pydantic input models inside each route
app = APIGatewayRestResolver(cors=cors_config, debug=False)

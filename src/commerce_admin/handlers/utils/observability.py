"""
Shared Powertools instances for the commerce admin service.

Handlers, services and the data access layer all log, trace and emit metrics
through the objects defined here, so correlation ids injected by the Lambda
entry point show up on every log line of an invocation.
"""

import os

from aws_lambda_powertools.logging import Logger
from aws_lambda_powertools.metrics import Metrics
from aws_lambda_powertools.tracing import Tracer

DEFAULT_METRICS_NAMESPACE = 'CommerceAdmin'

# Service name and level come from POWERTOOLS_SERVICE_NAME and LOG_LEVEL
logger: Logger = Logger()

# POWERTOOLS_TRACE_DISABLED=true turns tracing off outside Lambda
tracer: Tracer = Tracer()

metrics: Metrics = Metrics(namespace=os.environ.get('POWERTOOLS_METRICS_NAMESPACE', DEFAULT_METRICS_NAMESPACE))

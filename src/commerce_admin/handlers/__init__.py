"""
AWS Lambda Handlers Module.

The admin handler is the entry point of the service. It routes API Gateway
REST requests, validates input, runs each unit of work inside a transaction and
renders the response envelope.
"""

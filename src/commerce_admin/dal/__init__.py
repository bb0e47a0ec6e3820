"""
Data Access Layer (DAL) for the commerce admin service.

This package provides the DynamoDB handler, scoped write transactions and the
projection helpers used to reload entities after a write.
"""

from typing import Optional

from commerce_admin.dal.dynamodb_handler import (
    DALError,
    DynamoDBHandler,
    TransactionCanceledError,
    TransactionConflictError,
)
from commerce_admin.dal.projection import EntityProjection, FindConfig, project
from commerce_admin.dal.transaction import Transaction, TransactionManager


def get_dal_handler(table_name: str, region_name: Optional[str] = None, endpoint_url: Optional[str] = None) -> DynamoDBHandler:
    """
    Factory function to get the DAL handler.

    Args:
        table_name: Name of the database table
        region_name: AWS region name
        endpoint_url: DynamoDB endpoint URL (for local testing)

    Returns:
        DAL handler instance
    """
    return DynamoDBHandler(table_name=table_name, region_name=region_name, endpoint_url=endpoint_url)


__all__ = [
    'DALError',
    'DynamoDBHandler',
    'EntityProjection',
    'FindConfig',
    'Transaction',
    'TransactionCanceledError',
    'TransactionConflictError',
    'TransactionManager',
    'get_dal_handler',
    'project',
]

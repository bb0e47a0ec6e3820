"""Acting user resolution from the API Gateway authorizer context."""

from typing import Any, Mapping, Optional


def _claim(source: Optional[Mapping[str, Any]], name: str) -> Optional[str]:
    if not source:
        return None
    value = source.get(name)
    if value is None or value == '':
        return None
    return str(value)


def resolve_actor_id(
    authorizer: Optional[Mapping[str, Any]],
    primary_claim: str = 'id',
    fallback_claim: str = 'userId',
) -> Optional[str]:
    """
    Resolve the id of the user acting on a request.

    The primary claim wins over the fallback claim. Each claim is looked up on
    the authorizer context first and then in its ``claims`` map, where Cognito
    authorizers place token claims.

    Args:
        authorizer: ``requestContext.authorizer`` of the incoming event
        primary_claim: Claim holding the user id
        fallback_claim: Claim read when the primary claim is absent

    Returns:
        The acting user id, or None when the request carries no identity
    """
    if not authorizer:
        return None

    claims = authorizer.get('claims')
    if not isinstance(claims, Mapping):
        claims = None

    for name in (primary_claim, fallback_claim):
        actor_id = _claim(authorizer, name) or _claim(claims, name)
        if actor_id:
            return actor_id
    return None

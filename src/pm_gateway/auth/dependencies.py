"""FastAPI dependency: get_current_user.

Usage in any protected router:
    from src.pm_gateway.auth.dependencies import get_current_user

    @router.get("/protected")
    async def protected(user: Annotated[User, Depends(get_current_user)]):
        ...
"""

import logging
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config.settings import settings
from src.pm_common.errors import InvalidTokenError
from src.pm_gateway.auth.jwt_handler import decode_token
from src.pm_ledger.domain.models import User
from src.pm_matching.application.service import get_services

logger = logging.getLogger(__name__)

# auto_error=False so a missing header goes through the AppError envelope too
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> User:
    """Resolve the bearer token to a ledger user.

    A subject seen for the first time is given a ledger row holding
    STARTING_BALANCE; the display name comes from the optional "name" claim.
    """
    if credentials is None:
        raise InvalidTokenError()
    payload = decode_token(credentials.credentials)
    user_id = str(payload["sub"])

    store = get_services().store
    user = await store.get_user(user_id)
    if user is None:
        user = await store.create_user(
            user_id, payload.get("name"), settings.STARTING_BALANCE
        )
        logger.info("provisioned ledger user %s with %s", user_id, user.balance)
    return user

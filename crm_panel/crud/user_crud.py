from azure.cosmos.exceptions import CosmosHttpResponseError
from azure.cosmos.aio import ContainerProxy
from typing import Optional
from datetime import datetime, timezone

from passlib.context import CryptContext

from crm_panel.exceptions import DatabaseError
from crm_panel.models.user import UserRecord, UserSession
from crm_panel.logging_config import get_child_logger

logger = get_child_logger("crud.user")

# New hashes use pbkdf2; bcrypt hashes from older accounts still verify
pwd_context = CryptContext(schemes=["pbkdf2_sha256", "bcrypt"], deprecated="auto")


def get_password_hash(password):
    return pwd_context.hash(password)


def verify_password(plain_password, hashed_password):
    return pwd_context.verify(plain_password, hashed_password)


async def find_user_by_email(container: ContainerProxy, email: str) -> Optional[UserRecord]:
    query = "SELECT * FROM c WHERE c.email = @email"
    params = [{"name": "@email", "value": email}]
    try:
        async for item in container.query_items(query=query, parameters=params):
            return UserRecord.model_validate(item)
        return None
    except CosmosHttpResponseError as e:
        logger.error(
            f"Cosmos DB error looking up user: Status Code {e.status_code}, Message: {e.message}",
            exc_info=True,
        )
        raise DatabaseError(
            f"Cosmos DB error looking up user: Status Code {e.status_code}, Message: {e.message}",
            original_exception=e,
        ) from e


async def authenticate_user(
    container: ContainerProxy, email: str, password: str
) -> Optional[UserSession]:
    """
    Check the credentials and stamp the sign-in time.

    Returns:
        The session data for the user, or None when the credentials are rejected
    """
    user = await find_user_by_email(container, email)
    if user is None or not verify_password(password, user.hashed_password):
        logger.warning("Rejected login attempt", extra={"email": email})
        return None

    user.last_sign_in_at = datetime.now(timezone.utc).isoformat()
    try:
        await container.patch_item(
            item=user.id,
            partition_key=user.id,
            patch_operations=[
                {"op": "set", "path": "/last_sign_in_at", "value": user.last_sign_in_at}
            ],
        )
    except CosmosHttpResponseError as e:
        raise DatabaseError(
            f"Cosmos DB error recording sign-in: Status Code {e.status_code}, Message: {e.message}",
            original_exception=e,
        ) from e

    logger.info("User signed in", extra={"user_id": user.id})
    return user.to_session()

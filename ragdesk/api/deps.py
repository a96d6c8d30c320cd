import logging
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt
from jose.exceptions import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from ragdesk.core.config import settings
from ragdesk.db.session import AsyncSessionLocal
from ragdesk.services.chat import ChatAgent
from ragdesk.services.storage import ObjectStorage, get_object_storage
from ragdesk.services.uploads import UploadService

logger = logging.getLogger(__name__)

security = HTTPBearer()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database session."""
    async with AsyncSessionLocal() as session:
        yield session


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Security(security)],
) -> dict:
    """Get the current authenticated user from a signed JWT."""
    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except JWTError as e:
        logger.warning(f"Rejected bearer token: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
        )

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
        )
    return {"id": str(user_id), "role": payload.get("role", "user")}


def get_upload_service(
    db: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_object_storage),
) -> UploadService:
    return UploadService(db, storage=storage)


def get_chat_agent(db: AsyncSession = Depends(get_db)) -> ChatAgent:
    return ChatAgent(db)

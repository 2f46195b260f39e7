# stockroom/routes/auth.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from stockroom.core.exceptions import (
    ConflictError,
    DatabaseError,
    ForbiddenError,
    InvalidArgumentError,
    UnauthorizedError,
    UserNotFoundError,
)
from stockroom.core.security import get_bearer_token
from stockroom.dependencies import get_db
from stockroom.schemas.user import UserLogin, UserRegister
from stockroom.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])

logger = logging.getLogger(__name__)


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(user_data: UserRegister, db: AsyncSession = Depends(get_db)):
    try:
        result = await AuthService(db).register(user_data)
    except InvalidArgumentError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except DatabaseError as e:
        logger.error(f"Error registering user: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create user")

    return {"message": "User registered successfully", **result}


@router.post("/login")
async def login(credentials: UserLogin, db: AsyncSession = Depends(get_db)):
    try:
        result = await AuthService(db).login(credentials)
    except UnauthorizedError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
    return {"message": "Login successful", **result}


@router.get("/me")
async def me(token: Optional[str] = Depends(get_bearer_token), db: AsyncSession = Depends(get_db)):
    try:
        user = await AuthService(db).get_current_user(token)
    except ForbiddenError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except UnauthorizedError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return {"user": user}

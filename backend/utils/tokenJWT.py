# utils/tokenJWT.py
from jose import jwt, JWTError
from datetime import datetime, timedelta, timezone
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from models.module_catalog import AppModule
from models.users import User
from services.access_resolver import AccessResolver
from utils.errors import ForbiddenError

# Authorization scheme
bearer_scheme = HTTPBearer(auto_error=False)

# Generate a new JWT access token; the module list is deliberately not embedded
def create_access_token(data: dict, expires_delta: timedelta = None):
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

# Retrieve the currently authenticated user based on the JWT token
def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db)
):
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception
    try:
        payload = jwt.decode(credentials.credentials, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        email: str = payload.get("sub")
        # Ensure email is present in the token payload
        if email is None:
            raise credentials_exception
    except JWTError:
        raise credentials_exception

    user = db.execute(select(User).where(User.email == email)).unique().scalar_one_or_none()
    if user is None:
        raise credentials_exception
    return user

# Dependency factory for module-based access control; grants are resolved live on every request
def module_required(*modules: AppModule):
    names = [m.value for m in modules]

    def _checker(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
        if not AccessResolver(db).has_any_module(current_user.id, names):
            raise ForbiddenError(f"Access to the {' / '.join(names)} module is required")
        return current_user
    return _checker

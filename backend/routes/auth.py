# backend/routes/auth.py
from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.orm import Session

from database import get_db
from models.module_catalog import AppModule
from models.users import User
from schemas.common import ModuleListResponse
from schemas.user import UserLogin, UserOut, UserResponse, SessionResponse
from services.access_resolver import AccessResolver
from services.user_directory import UserDirectory
from utils.audit import write_log, client_ip
from utils.errors import ForbiddenError
from utils.hashing import verify_password
from utils.tokenJWT import create_access_token, get_current_user

router = APIRouter(tags=["Auth"])


# Authenticate user, issue JWT token and bootstrap the session's module list
@router.post("/login", response_model=SessionResponse)
def login(payload: UserLogin, request: Request, db: Session = Depends(get_db)):
    db_user = UserDirectory(db).get_by_email(payload.email)

    # Validate credentials and log failure on error
    if not db_user or not verify_password(payload.password, db_user.password_hash):
        write_log(db, user_id=(db_user.id if db_user else None), action="LOGIN", resource="auth",
                  status="FAIL", ip=client_ip(request), meta={"email": payload.email})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    access_token = create_access_token(data={"sub": db_user.email})
    modules = AccessResolver(db).resolve_modules(db_user.id)

    write_log(db, user_id=db_user.id, action="LOGIN", resource="auth",
              ip=client_ip(request), meta={"email": db_user.email, "modules": len(modules)})

    return {
        "success": True,
        "data": {
            "access_token": access_token,
            "token_type": "bearer",
            "user": UserOut.model_validate(db_user),
            "modules": modules,
        },
    }


# Retrieve current authenticated user details
@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return {"success": True, "data": UserOut.model_validate(current_user)}


# "Refresh my modules": re-derive the effective module list from the store
@router.get("/user-modules/{user_id}", response_model=ModuleListResponse)
def user_modules(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    resolver = AccessResolver(db)
    if user_id != current_user.id and not resolver.has_any_module(current_user.id, [AppModule.SETTINGS]):
        raise ForbiddenError("You can only refresh your own modules")
    return {"success": True, "data": resolver.resolve_modules(user_id)}

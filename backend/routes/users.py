# backend/routes/users.py
from typing import Optional
from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from sqlalchemy.orm import Session

from database import get_db
from models.module_catalog import AppModule
from models.users import User
from schemas.common import MessageResponse
from schemas.user import UserCreate, UserPatch, UserOut, UserResponse, UserListResponse
from services.user_directory import UserDirectory
from utils.audit import write_log, client_ip
from utils.errors import ForbiddenError
from utils.storage import save_profile_picture, discard_profile_picture
from utils.tokenJWT import module_required

router = APIRouter(prefix="/users", tags=["Users"])

admin_required = module_required(AppModule.SETTINGS)


# All users joined with their role name/description, newest first
@router.get("", response_model=UserListResponse)
def list_users(db: Session = Depends(get_db), current_user: User = Depends(admin_required)):
    users = UserDirectory(db).list()
    return {"success": True, "data": [UserOut.model_validate(u) for u in users]}


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: int, db: Session = Depends(get_db), current_user: User = Depends(admin_required)):
    return {"success": True, "data": UserOut.model_validate(UserDirectory(db).get(user_id))}


# Create a user (multipart form with an optional profile picture)
@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
    profile_picture: Optional[UploadFile] = File(None, alias="profilePicture"),
    first_name: Optional[str] = Form(None, alias="firstName"),
    last_name: Optional[str] = Form(None, alias="lastName"),
    email: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    role: Optional[str] = Form(None),
    company: Optional[str] = Form(None),
):
    fields = UserCreate(
        first_name=first_name, last_name=last_name, email=email, phone=phone,
        password=password, role=role, company=company,
    )
    directory = UserDirectory(db)
    # Validate before touching storage so a rejected request leaves no orphan file
    directory.check_create(fields)
    picture_url = save_profile_picture(profile_picture)
    try:
        user = directory.create(fields, profile_picture_url=picture_url)
    except Exception:
        discard_profile_picture(picture_url)
        raise

    write_log(db, user_id=current_user.id, action="USER_CREATE", resource="users",
              ip=client_ip(request), meta={"id": user.id, "email": user.email, "role_id": user.role_id})
    return {"success": True, "message": "User created successfully", "data": UserOut.model_validate(user)}


# Partial update: only the form fields actually sent are changed
@router.put("/{user_id}", response_model=MessageResponse)
def update_user(
    user_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
    profile_picture: Optional[UploadFile] = File(None, alias="profilePicture"),
    first_name: Optional[str] = Form(None, alias="firstName"),
    last_name: Optional[str] = Form(None, alias="lastName"),
    email: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    role: Optional[str] = Form(None),
    company: Optional[str] = Form(None),
):
    sent = {
        "first_name": first_name, "last_name": last_name, "email": email, "phone": phone,
        "password": password, "role": role, "company": company,
    }
    patch = UserPatch(**{k: v for k, v in sent.items() if v is not None})

    directory = UserDirectory(db)
    previous_picture = directory.get(user_id).profile_picture_url
    picture_url = save_profile_picture(profile_picture)
    try:
        user = directory.update(user_id, patch, profile_picture_url=picture_url)
    except Exception:
        discard_profile_picture(picture_url)
        raise
    if picture_url and previous_picture != picture_url:
        discard_profile_picture(previous_picture)

    write_log(db, user_id=current_user.id, action="USER_UPDATE", resource="users",
              ip=client_ip(request), meta={"id": user.id, "fields": sorted(patch.model_fields_set)})
    return {"success": True, "message": "User updated successfully"}


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    try:
        UserDirectory(db).delete(user_id, acting_user_id=current_user.id)
    except ForbiddenError:
        write_log(db, user_id=current_user.id, action="USER_DELETE", resource="users", status="FAIL",
                  ip=client_ip(request), meta={"id": user_id, "reason": "protected"})
        raise
    write_log(db, user_id=current_user.id, action="USER_DELETE", resource="users",
              ip=client_ip(request), meta={"id": user_id})
    return {"success": True, "message": "User deleted successfully"}

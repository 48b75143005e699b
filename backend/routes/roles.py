# backend/routes/roles.py
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from database import get_db
from models.module_catalog import AppModule
from models.users import User
from schemas.common import MessageResponse, ModuleListResponse
from schemas.role import RoleWrite, RoleOut, RoleResponse, RoleListResponse, ModulesReplace
from services.module_grants import ModuleGrantSet
from services.role_store import RoleStore
from utils.audit import write_log, client_ip
from utils.errors import ForbiddenError
from utils.tokenJWT import module_required

router = APIRouter(prefix="/roles", tags=["Roles"])

# Role and module-grant administration lives behind the settings module
admin_required = module_required(AppModule.SETTINGS)


# List all roles ordered by name
@router.get("", response_model=RoleListResponse)
def list_roles(db: Session = Depends(get_db), current_user: User = Depends(admin_required)):
    roles = RoleStore(db).list()
    return {"success": True, "data": [RoleOut.model_validate(r) for r in roles]}


# Retrieve a single role
@router.get("/{role_id}", response_model=RoleResponse)
def get_role(role_id: int, db: Session = Depends(get_db), current_user: User = Depends(admin_required)):
    role = RoleStore(db).get(role_id)
    return {"success": True, "data": RoleOut.model_validate(role)}


# Create a new role
@router.post("", response_model=RoleResponse, status_code=status.HTTP_201_CREATED)
def create_role(
    payload: RoleWrite,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    role = RoleStore(db).create(payload.name, payload.description)
    write_log(db, user_id=current_user.id, action="ROLE_CREATE", resource="roles",
              ip=client_ip(request), meta={"id": role.id, "name": role.name})
    return {"success": True, "message": "Role created successfully", "data": RoleOut.model_validate(role)}


# Rename / re-describe a role (the protected Admin role is rejected)
@router.put("/{role_id}", response_model=MessageResponse)
def update_role(
    role_id: int,
    payload: RoleWrite,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    try:
        role = RoleStore(db).update(role_id, payload.name, payload.description)
    except ForbiddenError:
        write_log(db, user_id=current_user.id, action="ROLE_UPDATE", resource="roles", status="FAIL",
                  ip=client_ip(request), meta={"id": role_id, "reason": "protected"})
        raise
    write_log(db, user_id=current_user.id, action="ROLE_UPDATE", resource="roles",
              ip=client_ip(request), meta={"id": role.id, "name": role.name})
    return {"success": True, "message": "Role updated successfully"}


# Delete a role that no user references; its module grants go with it
@router.delete("/{role_id}", response_model=MessageResponse)
def delete_role(
    role_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    try:
        RoleStore(db).delete(role_id)
    except ForbiddenError:
        write_log(db, user_id=current_user.id, action="ROLE_DELETE", resource="roles", status="FAIL",
                  ip=client_ip(request), meta={"id": role_id, "reason": "protected"})
        raise
    write_log(db, user_id=current_user.id, action="ROLE_DELETE", resource="roles",
              ip=client_ip(request), meta={"id": role_id})
    return {"success": True, "message": "Role deleted successfully"}


# Modules granted to a role, sorted by name
@router.get("/{role_id}/modules", response_model=ModuleListResponse)
def get_role_modules(role_id: int, db: Session = Depends(get_db), current_user: User = Depends(admin_required)):
    return {"success": True, "data": ModuleGrantSet(db).get_modules(role_id)}


# Replace the role's whole grant set ("checkbox list, then Save")
@router.put("/{role_id}/modules", response_model=MessageResponse)
def replace_role_modules(
    role_id: int,
    payload: ModulesReplace,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    modules = ModuleGrantSet(db).replace_modules(role_id, payload.modules)
    write_log(db, user_id=current_user.id, action="ROLE_MODULES_REPLACE", resource="roles",
              ip=client_ip(request), meta={"id": role_id, "modules": modules})
    if not modules:
        return {"success": True, "message": "Modules updated successfully (no access)"}
    return {"success": True, "message": "Modules updated successfully"}

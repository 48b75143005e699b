from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import List, Optional, Any


# Schema for role create/update requests
class RoleWrite(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


# Output schema for a role
class RoleOut(BaseModel):
    id: int
    name: str
    description: str = ""
    is_protected: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class RoleResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    data: RoleOut


class RoleListResponse(BaseModel):
    success: bool = True
    data: List[RoleOut]


# Body of PUT /roles/{id}/modules; element types are checked by the grant set
class ModulesReplace(BaseModel):
    modules: Any = None


# Catalog entry shown in the privileges screen
class ModuleInfo(BaseModel):
    name: str
    title: str
    description: str


class ModuleCatalogResponse(BaseModel):
    success: bool = True
    data: List[ModuleInfo]

# backend/routes/modules.py
from fastapi import APIRouter, Depends

from models.module_catalog import AppModule, MODULE_DESCRIPTIONS
from models.users import User
from schemas.role import ModuleCatalogResponse
from utils.tokenJWT import get_current_user

router = APIRouter(tags=["Modules"])


# The fixed module catalog shown in the privileges screen
@router.get("/modules", response_model=ModuleCatalogResponse)
def list_modules(current_user: User = Depends(get_current_user)):
    data = []
    for module in AppModule:
        title, description = MODULE_DESCRIPTIONS[module]
        data.append({"name": module.value, "title": title, "description": description})
    return {"success": True, "data": data}

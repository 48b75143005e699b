from pydantic import BaseModel
from typing import List


# Every response carries a success flag; failures add a human-readable message
class MessageResponse(BaseModel):
    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    success: bool = False
    message: str


class ModuleListResponse(BaseModel):
    success: bool = True
    data: List[str]

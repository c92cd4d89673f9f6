# clinicdesk/schemas/common/common.py
from pydantic import BaseModel
from typing import List, Any, Optional

class ErrorResponse(BaseModel):
    success: bool = False
    data: Optional[Any] = None
    error: str

class MessageResponse(BaseModel):
    message: str

class PaginatedResponse(BaseModel):
    items: List[Any]
    page: int
    page_size: int
    total: int
    total_pages: int

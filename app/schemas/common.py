from typing import Optional, Any, Dict
from pydantic import BaseModel


class ResponseModel(BaseModel):
    """Standard API response model"""
    success: bool
    data: Optional[Any] = None
    message: Optional[str] = None
    error: Optional[Dict[str, Any]] = None

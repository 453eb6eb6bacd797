# receipt_tracker/schemas/response_schemas.py
from pydantic import BaseModel


class MessageResponse(BaseModel):
    """Generic message response"""
    message: str

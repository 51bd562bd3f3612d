"""
Response bodies returned by the form endpoints.
"""

from pydantic import BaseModel


class ApplyJobResponse(BaseModel):
    success: bool = True
    message: str = "Application submitted successfully"


class MessageResponse(BaseModel):
    message: str


__all__ = ["ApplyJobResponse", "MessageResponse"]

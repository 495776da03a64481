"""
Uniform result shape returned by every domain action.

    {"success": true,  "data": ...,                                   "status"?: int}
    {"success": false, "error": {"message": ..., "fieldErrors"?: ...}, "status"?: int}

success=True iff data is present and error absent; success=False iff error is
present and data absent. Constructing anything else raises.
"""

from typing import Any, Generic, Optional, TypeVar
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, Field, model_validator

T = TypeVar("T")


class ActionError(BaseModel):
    message: str
    field_errors: Optional[dict[str, list[str]]] = Field(default=None, alias="fieldErrors")

    class Config:
        populate_by_name = True


class ActionResponse(BaseModel, Generic[T]):
    success: bool
    data: Optional[T] = None
    error: Optional[ActionError] = None
    status: Optional[int] = None

    @model_validator(mode="after")
    def _check_shape(self):
        if self.success and (self.data is None or self.error is not None):
            raise ValueError("successful response requires data and no error")
        if not self.success and (self.error is None or self.data is not None):
            raise ValueError("failed response requires an error and no data")
        return self

    @classmethod
    def ok(cls, data: Any, status: Optional[int] = None) -> "ActionResponse":
        return cls(success=True, data=data, status=status)

    @classmethod
    def fail(
        cls,
        message: str,
        status: int,
        field_errors: Optional[dict[str, list[str]]] = None,
    ) -> "ActionResponse":
        return cls(
            success=False,
            error=ActionError(message=message, field_errors=field_errors),
            status=status,
        )

    @property
    def http_status(self) -> int:
        if self.status is not None:
            return self.status
        return 200 if self.success else 500

    def to_payload(self) -> dict:
        """JSON-ready dict; absent members are omitted rather than sent as null."""
        payload: dict[str, Any] = {"success": self.success}
        if self.success:
            payload["data"] = jsonable_encoder(self.data)
        else:
            payload["error"] = self.error.model_dump(by_alias=True, exclude_none=True)
        if self.status is not None:
            payload["status"] = self.status
        return payload

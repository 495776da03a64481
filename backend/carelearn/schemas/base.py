from pydantic import BaseModel


class RequestModel(BaseModel):
    """Action input: accepts camelCase keys from clients or snake_case from Python callers."""

    class Config:
        populate_by_name = True
        str_strip_whitespace = True


class ResponseModel(BaseModel):
    class Config:
        from_attributes = True

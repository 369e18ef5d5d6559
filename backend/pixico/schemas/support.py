from pydantic import BaseModel, StrictStr, field_validator


class SupportRequest(BaseModel):
    message: StrictStr

    @field_validator("message")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("message must not be empty")
        return v


class SupportResponse(BaseModel):
    response: str


class SupportError(BaseModel):
    error: str

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class ProviderCreate(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    type: Literal["workshop", "individual"]
    name: str
    mobile_number: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name is required")
        return v


class ProviderOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    type: str
    name: str
    mobile_number: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    status: str = "pending"
    created_at: Optional[datetime] = None


class ProviderResponse(BaseModel):
    success: bool = True
    provider: ProviderOut


class ProviderListResponse(BaseModel):
    success: bool = True
    providers: list[ProviderOut] = []

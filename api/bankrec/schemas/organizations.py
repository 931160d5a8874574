from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, ConfigDict, constr


class OrganizationCreate(BaseModel):
    name: constr(min_length=1, max_length=200)
    currency: constr(min_length=3, max_length=3) = "USD"


class OrganizationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    currency: str
    created_at: datetime

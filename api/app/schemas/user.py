"""User schemas."""
from pydantic import BaseModel, ConfigDict


class UserSummary(BaseModel):
    """Compact user reference embedded in other responses."""
    user_id: int
    full_name: str

    model_config = ConfigDict(from_attributes=True)

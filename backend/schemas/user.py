from pydantic import BaseModel, ConfigDict, Field

from models.enums import UserRole

# Schema for PIN authentication at the terminal
class UserLogin(BaseModel):
    username: str
    pin: str = Field(min_length=4, max_length=8)

# Output schema for user profile details
class UserResponse(BaseModel):
    id: int
    username: str
    full_name: str
    role: UserRole
    is_active: bool

    model_config = ConfigDict(from_attributes=True)

# Schema for JWT authentication token response
class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"

from pydantic import EmailStr

from app.schemas.common import CamelModel
from app.schemas.users import UserOut


class LoginRequest(CamelModel):
    email: EmailStr
    password: str


class LoginResponse(CamelModel):
    token: str
    token_type: str = "bearer"
    user: UserOut

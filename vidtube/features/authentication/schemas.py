from typing import Optional
from pydantic import BaseModel, Field

from vidtube.features.users.schemas import UserOut

# ---------- Inputs ----------

class RegisterIn(BaseModel):
    # champs multipart : validés par le service (InvalidArgument plutôt que 422)
    full_name: Optional[str] = None
    email: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None

class LoginIn(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: str

class RefreshIn(BaseModel):
    refresh_token: Optional[str] = None

class ChangePasswordIn(BaseModel):
    old_password: str
    new_password: str = Field(min_length=8, max_length=128)


# ---------- Outputs ----------

class TokenPairOut(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int  # secondes (durée de l'access token)

class LoginOut(TokenPairOut):
    user: UserOut

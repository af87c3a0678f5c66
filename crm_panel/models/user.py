from pydantic import BaseModel, ConfigDict
from typing import Optional


class UserSession(BaseModel):
    """
    User data kept in the session cookie after a successful login.
    """

    id: str
    email: str
    name: str
    last_sign_in_at: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class UserRecord(BaseModel):
    """
    Document shape of the users container.
    """

    id: str
    email: str
    hashed_password: str
    name: Optional[str] = None
    last_sign_in_at: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    def to_session(self) -> UserSession:
        return UserSession(
            id=self.id,
            email=self.email,
            name=self.name or self.email.split("@")[0],
            last_sign_in_at=self.last_sign_in_at,
        )

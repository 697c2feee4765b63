from pydantic import BaseModel
from typing import List

ADMIN_ROLE = "ADMIN"


class UserModel(BaseModel):
    """This class is used to create a user model for basic authentication."""
    username: str
    hash_password: str
    salt: str
    roles: List[str] = []

    def has_role(self, role: str) -> bool:
        return role in self.roles

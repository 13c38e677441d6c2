from dataclasses import dataclass, field
from typing import List


@dataclass(frozen=True)
class TokenClaims:
    """Identity carried inside a session token.

    Roles are a snapshot taken when the token was issued; a role change in the
    store is only visible after the user logs in again.
    """

    user_id: int
    email: str
    full_name: str
    roles: List[str] = field(default_factory=list)

    def has_any_role(self, allowed) -> bool:
        return any(role in allowed for role in self.roles)

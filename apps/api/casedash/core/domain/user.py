from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class Role(str, Enum):
    admin = "Admin"
    executive = "Executive"
    program_director = "ProgramDirector"
    staff = "Staff"


@dataclass
class User:
    user_id: int
    email: str
    full_name: str
    password_hash: str
    is_active: bool
    roles: List[str] = field(default_factory=list)
    last_login_at: Optional[datetime] = None

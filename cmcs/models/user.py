"""User account record, read from the users container."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from ..utils.time_utils import format_timestamp, parse_timestamp


class UserType(str, Enum):
    LECTURER = "Lecturer"
    ACADEMIC_MANAGER = "Academic Manager"


@dataclass
class UserRecord:
    """
    A registered user as written by the login screen.

    The password field is carried through untouched so that saving the
    container does not drop it.
    """
    email: str
    full_name: str
    user_type: str
    password: str = ""
    created_date: Optional[datetime] = None
    last_modified_date: Optional[datetime] = None
    is_active: bool = True
    phone_number: Optional[str] = None
    department: Optional[str] = None
    last_login_date: Optional[datetime] = None
    login_attempts: int = 0
    is_locked: bool = False

    def __post_init__(self):
        if isinstance(self.user_type, UserType):
            self.user_type = self.user_type.value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "Email": self.email,
            "Password": self.password,
            "FullName": self.full_name,
            "UserType": self.user_type,
            "CreatedDate": format_timestamp(self.created_date),
            "LastModifiedDate": format_timestamp(self.last_modified_date),
            "IsActive": self.is_active,
            "PhoneNumber": self.phone_number,
            "Department": self.department,
            "LastLoginDate": format_timestamp(self.last_login_date),
            "LoginAttempts": self.login_attempts,
            "IsLocked": self.is_locked,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserRecord":
        return cls(
            email=data.get("Email") or "",
            password=data.get("Password") or "",
            full_name=data.get("FullName") or "",
            user_type=data.get("UserType") or "",
            created_date=parse_timestamp(data.get("CreatedDate")),
            last_modified_date=parse_timestamp(data.get("LastModifiedDate")),
            is_active=bool(data.get("IsActive", True)),
            phone_number=data.get("PhoneNumber"),
            department=data.get("Department"),
            last_login_date=parse_timestamp(data.get("LastLoginDate")),
            login_attempts=int(data.get("LoginAttempts") or 0),
            is_locked=bool(data.get("IsLocked", False)),
        )

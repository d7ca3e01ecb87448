from typing import Literal, List, Optional
from pydantic import BaseModel

from app.schemas.auth import ProfileOut
from app.schemas.booking import BookingOut


class StatusUpdate(BaseModel):
    status: Literal["active", "disabled", "deleted"]


class RoleUpdate(BaseModel):
    role: Literal["user", "admin", "manager"]


class UserPage(BaseModel):
    total: int
    items: List[ProfileOut]


class UserDetailOut(BaseModel):
    profile: ProfileOut
    bookings: List[BookingOut] = []


class StatsOut(BaseModel):
    totalUsers: int
    activeBookings: int
    pendingPayments: int


class AccessOut(BaseModel):
    outcome: Literal["allow", "login", "home"]
    redirectTo: Optional[str] = None
    capability: str

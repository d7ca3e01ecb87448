from datetime import date
from decimal import Decimal
from pydantic import BaseModel, model_validator
from typing import List, Optional

class BookingCreate(BaseModel):
    roomId: str
    checkIn: date
    checkOut: date

    @model_validator(mode="after")
    def _dates_ordered(self):
        if self.checkOut <= self.checkIn:
            raise ValueError("check-out must be after check-in")
        return self

class BookingOut(BaseModel):
    id: str
    roomId: str
    roomName: Optional[str] = None
    checkIn: str
    checkOut: str
    nights: int
    pricePerNight: Decimal
    totalPrice: Decimal
    status: str
    paymentStatus: str
    createdAt: Optional[str] = None
    guestName: Optional[str] = None
    guestEmail: Optional[str] = None

class RoomOut(BaseModel):
    id: str
    name: str
    description: str = ""
    capacity: int
    pricePerNight: Decimal
    amenities: List[str] = []
    isAvailable: bool = True

class RoomCreate(BaseModel):
    name: str
    description: str = ""
    capacity: int = 1
    pricePerNight: Decimal
    amenities: List[str] = []
    isAvailable: bool = True

class RoomAvailabilityUpdate(BaseModel):
    isAvailable: bool

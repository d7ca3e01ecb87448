from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.api.deps import get_current_user
from app.models.profile import Profile
from app.schemas.booking import RoomOut
from app.services.room_service import list_available_rooms, room_out

router = APIRouter(tags=["rooms"])


@router.get("/rooms", response_model=List[RoomOut])
def list_rooms(db: Session = Depends(get_db), me: Profile = Depends(get_current_user)):
    return [room_out(r) for r in list_available_rooms(db)]

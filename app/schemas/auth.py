from typing import Literal, Optional
from pydantic import BaseModel, EmailStr, Field, field_validator

PASSWORD_MIN_LENGTH = 8


class RegisterRequest(BaseModel):
    """Accommodation form submitted at sign-up."""
    fullName: str = Field(min_length=2)
    address: str = Field(min_length=5)
    email: EmailStr
    password: str = Field(min_length=PASSWORD_MIN_LENGTH)
    phone: str = Field(min_length=10)
    callUpNumber: str = Field(min_length=5)
    stateOfOrigin: str = Field(min_length=2)
    lga: str = Field(min_length=2)
    gender: Literal["male", "female"]
    dateOfBirth: str = Field(min_length=1)
    maritalStatus: Literal["single", "married", "divorced", "widowed"]
    mcanRegNo: str = Field(min_length=1)
    institution: str = Field(min_length=2)

    emergencyContactName: str = Field(min_length=2)
    emergencyContactAddress: str = Field(min_length=5)
    emergencyContactPhone1: str = Field(min_length=10)
    emergencyContactPhone2: Optional[str] = None

    nextOfKinName: str = Field(min_length=2)
    nextOfKinAddress: str = Field(min_length=5)
    nextOfKinPhone1: str = Field(min_length=10)
    nextOfKinPhone2: Optional[str] = None

    islamicKnowledgeLevel: Literal["beginner", "intermediate", "advanced"]
    dietaryPreferences: Literal["halal", "vegetarian", "none"]
    prayerRequirements: str = Field(min_length=1)

    @field_validator("email", mode="after")
    @classmethod
    def normalize_email(cls, v: EmailStr) -> str:
        return str(v).strip().lower()


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class ChangePasswordRequest(BaseModel):
    oldPassword: str
    newPassword: str = Field(min_length=PASSWORD_MIN_LENGTH)


class PasswordResetRequest(BaseModel):
    email: EmailStr


class PasswordResetConfirm(BaseModel):
    token: str
    newPassword: str = Field(min_length=PASSWORD_MIN_LENGTH)


class ProfileOut(BaseModel):
    id: str
    fullName: str
    email: str
    phone: str = ""
    address: str = ""
    gender: str = ""
    role: str
    status: str
    createdAt: str | None = None


class RefreshRequest(BaseModel):
    refresh_token: str

"""API request and response shapes"""
from typing import Optional
from typing_extensions import NotRequired, TypedDict


class VerifyRequest(TypedDict, total=False):
    pinNumber: str
    imageData: str


class RegisterRequest(TypedDict):
    username: str
    password: str
    fullName: NotRequired[Optional[str]]
    email: NotRequired[Optional[str]]
    department: NotRequired[Optional[str]]


class LoginRequest(TypedDict):
    username: str
    password: str


class UserUpdateRequest(TypedDict, total=False):
    username: str
    role: str
    fullName: Optional[str]
    email: Optional[str]
    department: Optional[str]


class UserStatusRequest(TypedDict):
    status: str


class VerificationUpdateRequest(TypedDict):
    status: str
    response: NotRequired[Optional[str]]


class FrameRequest(TypedDict):
    frame: str


class CaptureRequest(TypedDict, total=False):
    cropStrategy: str


class UserResponse(TypedDict):
    id: int
    username: str
    role: str
    status: str
    fullName: Optional[str]
    email: Optional[str]
    department: Optional[str]
    createdAt: str


class TokenResponse(TypedDict):
    accessToken: str
    tokenType: str
    user: UserResponse


class VerificationResponse(TypedDict):
    id: int
    userId: int
    merchantId: Optional[str]
    pinNumber: str
    imageData: str
    status: str
    response: Optional[str]
    createdAt: str
    updatedAt: Optional[str]
    user: NotRequired[UserResponse]


class CaptureResponse(TypedDict):
    imageData: str
    mimeType: str
    width: int
    height: int
    byteSize: int
    quality: int

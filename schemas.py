"""
Request / response models for the HTTP API
"""
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from core.entrant_status import EntrantStatus, SetStatusResult


# ============ Events ============

class EventCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    organizer_device_id: str = Field(..., min_length=1, max_length=128)
    description: Optional[str] = None
    capacity: Optional[int] = Field(default=None, ge=0)


class EventUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    capacity: Optional[int] = Field(default=None, ge=0)


class EventResponse(BaseModel):
    event_id: str
    name: str
    description: Optional[str] = None
    organizer_device_id: str
    capacity: Optional[int] = None
    created_at: datetime


class EventDetailResponse(EventResponse):
    status_counts: Dict[EntrantStatus, int]
    participant_lists: Dict[str, List[str]]


# ============ Entrants ============

class EntrantResponse(BaseModel):
    device_id: str
    name: Optional[str] = None
    email: Optional[str] = None


class EntrantListResponse(BaseModel):
    event_id: str
    status: Optional[EntrantStatus] = None
    entrants: List[EntrantResponse]


class EntrantStatusResponse(BaseModel):
    event_id: str
    device_id: str
    tracked: bool
    status: Optional[EntrantStatus] = None


class StatusUpdate(BaseModel):
    status: EntrantStatus


class TransitionResponse(BaseModel):
    event_id: str
    device_id: str
    previous_status: Optional[EntrantStatus] = None
    status: EntrantStatus
    result: SetStatusResult


class LotteryRequest(BaseModel):
    slots: int
    seed: Optional[int] = None


class LotteryResponse(BaseModel):
    event_id: str
    invited: List[EntrantResponse]


class NotifyRequest(BaseModel):
    status: EntrantStatus
    message: str = Field(..., min_length=1)


class NotifyResponse(BaseModel):
    event_id: str
    notified: List[str]


# ============ Users ============

class UserCreate(BaseModel):
    device_id: str
    name: str = ""
    email: str = ""
    phone_number: Optional[str] = None
    role: str = "entrant"


class UserUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    role: Optional[str] = None
    tags: Optional[List[str]] = None


class NotificationCreate(BaseModel):
    message: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    device_id: str
    name: str
    email: str
    phone_number: Optional[str] = None
    role: str
    notification_history: List[str]
    tags: List[str]

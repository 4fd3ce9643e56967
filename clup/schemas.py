# clup/schemas.py
# Pydantic request / response bodies. Wire names are camelCase, as the web client expects.
from datetime import datetime, time
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from clup.models.ticket import TicketStatus, TicketType


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


# --- Auth ---

class LoginRequest(CamelModel):
    phone_number: str = Field(..., alias="phoneNumber")


class CodeRequest(CamelModel):
    phone_number: str = Field(..., alias="phoneNumber")
    sms_code: str = Field(..., alias="SMSCode")


class Message(BaseModel):
    message: str


class AuthToken(CamelModel):
    auth_token: str = Field(..., alias="authToken")


# --- Stores ---

class StoreOut(CamelModel):
    id: int
    name: str
    address: str
    latitude: float
    longitude: float
    max_capacity: int = Field(..., alias="maxCapacity")
    curr_number: int = Field(..., alias="currNumber")


class StoreSearchResult(StoreOut):
    distance_km: float = Field(..., alias="distanceKm")


class Timeslot(CamelModel):
    id: int
    weekday: int
    start_time: time = Field(..., alias="startTime")
    date: datetime
    max_people_allowed: int = Field(..., alias="maxPeopleAllowed")
    crowdedness: int


class StoreDetail(StoreOut):
    queue_length: int = Field(..., alias="queueLength")
    queue_wait_minutes: int = Field(..., alias="queueWaitMinutes")
    timeslots: List[Timeslot] = []


class Occupancy(CamelModel):
    curr_number: int = Field(..., alias="currNumber")


# --- Tickets ---

class Receipt(CamelModel):
    receipt_id: str = Field(..., alias="receiptId")


class CancelledReceipt(Receipt):
    status: TicketStatus = TicketStatus.cancelled


class LeaveQueueRequest(CamelModel):
    queue_receipt_id: str = Field(..., alias="queueReceiptId")


class CancelReservationRequest(CamelModel):
    reservation_receipt_id: str = Field(..., alias="reservationReceiptId")


class VerifyTicketRequest(CamelModel):
    receipt_id: str = Field(..., alias="receiptId")


class TicketValidity(CamelModel):
    is_ticket_valid: bool = Field(..., alias="isTicketValid")


class UserTicket(CamelModel):
    receipt_id: str = Field(..., alias="receiptId")
    type: TicketType
    status: TicketStatus
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    store_id: int = Field(..., alias="storeId")
    store_name: str = Field(..., alias="storeName")
    queue_position: Optional[int] = Field(None, alias="queuePosition")
    reservation_date: Optional[datetime] = Field(None, alias="reservationDate")

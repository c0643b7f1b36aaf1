"""Pydantic request bodies for the command endpoints.

Create bodies carry no id; the remote store assigns it.  Update bodies are
partial: only fields the client actually sent are forwarded.
"""

from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel, Field

from pulse_engine.domain.enums import SignalStatus, SignalType, TicketStatus, Urgency


class SignalCreate(BaseModel):
    """A new signal submitted by a consumer."""

    title: str = Field(..., min_length=1, max_length=256)
    description: Optional[str] = None
    signal_type: SignalType = SignalType.GENERAL
    status: SignalStatus = SignalStatus.PENDING
    urgency: Urgency = Urgency.NORMAL
    amount: Optional[float] = Field(default=None, ge=0.0)
    confidence: Optional[float] = Field(default=None, ge=0.0, le=100.0)
    flag_reason: Optional[str] = None
    bottleneck: Optional[Union[bool, str]] = None
    funding: Optional[str] = None
    expected_date: Optional[str] = None
    category: Optional[str] = None
    submitter_name: Optional[str] = None
    location: Optional[str] = None

    model_config = {"extra": "forbid"}


class SignalUpdate(BaseModel):
    """Partial update of an existing signal."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=256)
    description: Optional[str] = None
    signal_type: Optional[SignalType] = None
    status: Optional[SignalStatus] = None
    urgency: Optional[Urgency] = None
    amount: Optional[float] = Field(default=None, ge=0.0)
    confidence: Optional[float] = Field(default=None, ge=0.0, le=100.0)
    flag_reason: Optional[str] = None
    bottleneck: Optional[Union[bool, str]] = None
    funding: Optional[str] = None
    expected_date: Optional[str] = None

    model_config = {"extra": "forbid"}


class TicketCreate(BaseModel):
    signal_id: str = Field(..., min_length=1)
    issue_description: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)
    room_or_area: Optional[str] = None
    priority: Urgency = Urgency.NORMAL
    status: TicketStatus = TicketStatus.OPEN
    scheduled_date: Optional[str] = None

    model_config = {"extra": "forbid"}


class TicketUpdate(BaseModel):
    status: Optional[TicketStatus] = None
    priority: Optional[Urgency] = None
    contractor_name: Optional[str] = None
    contractor_phone: Optional[str] = None
    scheduled_date: Optional[str] = None
    completion_date: Optional[str] = None
    resolution_notes: Optional[str] = None

    model_config = {"extra": "forbid"}


def command_fields(body: BaseModel, partial: bool = False) -> dict:
    """Render a request body as transport fields, enums as plain values.

    Partial bodies keep only the fields the client actually sent; full
    bodies keep defaults but drop empty optionals.
    """
    if partial:
        return body.model_dump(mode="json", exclude_unset=True)
    return body.model_dump(mode="json", exclude_none=True)

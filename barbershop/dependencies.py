"""Shared FastAPI dependencies - objects built once in the lifespan and kept on app.state"""

from datetime import datetime
from typing import Callable, Optional

from fastapi import Request

from .domain.scheduling.availability_service import SchedulingPolicy, get_scheduling_policy
from .domain.scheduling.locks import BookingLockRegistry


def get_policy(request: Request) -> SchedulingPolicy:
    return getattr(request.app.state, "scheduling_policy", None) or get_scheduling_policy()


def get_booking_locks(request: Request) -> BookingLockRegistry:
    return request.app.state.booking_locks


def get_calendar(request: Request):
    """The Google Calendar adapter, or None when the integration is disabled"""
    return getattr(request.app.state, "calendar", None)


def get_clock(request: Request) -> Optional[Callable[[], datetime]]:
    return getattr(request.app.state, "clock", None)

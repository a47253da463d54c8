#!/usr/bin/env python
import logging

__version__ = "0.3.0"

from .async_client import AsyncCalendarClient
from .client import CalendarClient
from .client import get_client
from .config import ClientConfig
from .event import CalendarEvent
from .event import Change
from .event import ChangeStatus
from .event import EventFilters
from .event import SyncResult
from .lib.error import ConflictError

# Silence notification of no default logging handler
log = logging.getLogger("eventdav")
log.addHandler(logging.NullHandler())

__all__ = [
    "__version__",
    "AsyncCalendarClient",
    "CalendarClient",
    "CalendarEvent",
    "Change",
    "ChangeStatus",
    "ClientConfig",
    "ConflictError",
    "EventFilters",
    "SyncResult",
    "get_client",
]

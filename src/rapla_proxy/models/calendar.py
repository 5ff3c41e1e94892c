"""
Calendar Data Models

The extractor produces a Calendar, the proxy only ever asks it to serialize
itself. Times are Berlin wall-clock times, exactly as Rapla renders them.
"""

import datetime as dt
from typing import BinaryIO, Iterator, List, Optional

from pydantic import BaseModel

from rapla_proxy.models.ical import iter_ical_chunks


class Event(BaseModel):
    """A single scheduled event on one day."""
    date: dt.date
    start: dt.time
    end: dt.time
    title: str
    location: Optional[str] = None
    organizer: Optional[str] = None
    description: Optional[str] = None

    @property
    def starts_at(self) -> dt.datetime:
        return dt.datetime.combine(self.date, self.start)

    @property
    def ends_at(self) -> dt.datetime:
        return dt.datetime.combine(self.date, self.end)


class Calendar(BaseModel):
    """Request-scoped set of events for one resource key."""
    name: str
    events: List[Event] = []

    def iter_ical(self) -> Iterator[bytes]:
        """Yield the iCalendar document one component at a time."""
        return iter_ical_chunks(self.name, self.events)

    def serialize_to(self, writer: BinaryIO) -> None:
        """Write the complete iCalendar document to ``writer`` in one pass."""
        for chunk in self.iter_ical():
            writer.write(chunk)

"""
iCalendar serialization

Builds the document with the ``icalendar`` library but emits it component by
component, so a large calendar is never rendered into one buffer before the
first byte reaches the client.
"""

from datetime import datetime, timedelta
from typing import Iterable, Iterator

import icalendar
import pytz

from rapla_proxy.constants import APP_SETTINGS, BERLIN_TIMEZONE, ICAL_SETTINGS

CALENDAR_END = b"END:VCALENDAR\r\n"


def build_timezone() -> icalendar.Timezone:
    """Europe/Berlin with the CET/CEST switch on the last Sundays of October and March."""
    standard = icalendar.TimezoneStandard()
    standard.add("dtstart", datetime(1970, 10, 25, 3, 0, 0))
    standard.add("tzoffsetfrom", timedelta(hours=2))
    standard.add("tzoffsetto", timedelta(hours=1))
    standard.add("tzname", ICAL_SETTINGS.STANDARD_NAME)
    standard.add("rrule", {"freq": "yearly", "bymonth": 10, "byday": "-1SU"})

    daylight = icalendar.TimezoneDaylight()
    daylight.add("dtstart", datetime(1970, 3, 29, 2, 0, 0))
    daylight.add("tzoffsetfrom", timedelta(hours=1))
    daylight.add("tzoffsetto", timedelta(hours=2))
    daylight.add("tzname", ICAL_SETTINGS.DAYLIGHT_NAME)
    daylight.add("rrule", {"freq": "yearly", "bymonth": 3, "byday": "-1SU"})

    timezone = icalendar.Timezone()
    timezone.add("tzid", ICAL_SETTINGS.TIMEZONE_ID)
    timezone.add_component(daylight)
    timezone.add_component(standard)
    return timezone


def event_uid(event) -> str:
    return f"{event.starts_at:%Y%m%dT%H%M}00_{event.title.replace(' ', '-')}"


def build_event(event) -> icalendar.Event:
    local = {"TZID": ICAL_SETTINGS.TIMEZONE_ID}

    component = icalendar.Event()
    component.add("uid", event_uid(event))
    # Derived from the event itself so identical upstream data stays byte-identical
    component.add("dtstamp", BERLIN_TIMEZONE.localize(event.starts_at).astimezone(pytz.utc))
    component.add("dtstart", event.starts_at, parameters=local)
    component.add("dtend", event.ends_at, parameters=local)
    component.add("summary", event.title)

    if event.location:
        component.add("location", event.location)
    if event.organizer:
        component.add("organizer", event.organizer)
    if event.description:
        component.add("description", event.description)

    return component


def calendar_head(name: str) -> bytes:
    """Everything up to, but excluding, the first subcomponent."""
    calendar = icalendar.Calendar()
    calendar.add("prodid", f"-//{APP_SETTINGS.APP_NAME}//{name}//EN")
    calendar.add("version", ICAL_SETTINGS.VERSION)
    calendar.add("x-wr-calname", name)
    calendar.add("x-wr-timezone", ICAL_SETTINGS.TIMEZONE_ID)

    head, _, _ = calendar.to_ical().rpartition(CALENDAR_END)
    return head


def iter_ical_chunks(name: str, events: Iterable) -> Iterator[bytes]:
    yield calendar_head(name)
    yield build_timezone().to_ical()
    for event in events:
        yield build_event(event).to_ical()
    yield CALENDAR_END

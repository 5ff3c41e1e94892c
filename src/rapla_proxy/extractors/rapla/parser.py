"""
Rapla calendar view parser

Turns the HTML week view Rapla renders for a calendar key into a Calendar.
The page lists consecutive weeks; each week table starts with a header row
holding the week number and the Monday's date, followed by rows whose cells
either separate days or hold an event block.
"""

import logging
from datetime import date, timedelta
from typing import List, Tuple

from rapla_proxy.errors import MalformedCalendarError
from rapla_proxy.extractors.rapla.utils.datetime_utils import parse_time_range, parse_week_header
from rapla_proxy.extractors.rapla.utils.html import Element, parse_html
from rapla_proxy.models import Calendar, Event

logger = logging.getLogger(__name__)


def parse_calendar(document: str) -> Calendar:
    """
    Parse a Rapla calendar page.

    Args:
        document: HTML returned by the Rapla calendar view

    Returns:
        Calendar named after the page title, with events in page order

    Raises:
        MalformedCalendarError: If a mandatory element is missing or unreadable
    """
    root = parse_html(document)

    title = root.find("title")
    if title is None:
        raise MalformedCalendarError("Rapla page has no title")
    name = title.text().strip()

    year = _start_year(root)

    events = []
    previous_monday = None
    for week in _week_bodies(root):
        day, month = _week_start(week)
        monday = _monday(year, day, month)
        # Weeks are consecutive; the year select only names the first week's year
        if previous_monday is not None and monday < previous_monday:
            year += 1
            monday = _monday(year, day, month)
        events.extend(_parse_week(week, monday))
        previous_monday = monday

    logger.debug("Parsed %d events from calendar %r", len(events), name)
    return Calendar(name=name, events=events)


def _start_year(root: Element) -> int:
    select = root.find("select", name="year")
    option = select.find("option", selected=True) if select is not None else None
    if option is None:
        raise MalformedCalendarError("Rapla page has no selected year")

    try:
        return int(option.text().strip())
    except ValueError:
        raise MalformedCalendarError(f"Unreadable year {option.text()!r}")


def _week_bodies(root: Element) -> List[Element]:
    bodies = []
    for container in root.find_all("div", class_="calendar"):
        for table in container.children_matching("table", class_="week_table"):
            tbody = table.children_matching("tbody")
            bodies.extend(tbody or [table])
    return bodies


def _rows(week: Element) -> List[Element]:
    rows = []

    def walk(node: Element):
        for child in node.elements:
            if child.tag == "tr":
                rows.append(child)
            # Event blocks embed their own tables, whose rows are not calendar rows
            elif child.tag != "table":
                walk(child)

    walk(week)
    return rows


def _week_start(week: Element) -> Tuple[int, int]:
    header = week.find("td", class_="week_header")
    nobr = header.find("nobr") if header is not None else None
    if nobr is None:
        raise MalformedCalendarError("Week table has no start date")

    try:
        return parse_week_header(nobr.text())
    except ValueError as e:
        raise MalformedCalendarError(f"Unreadable week start {nobr.text()!r}: {e}")


def _monday(year: int, day: int, month: int) -> date:
    try:
        return date(year, month, day)
    except ValueError as e:
        raise MalformedCalendarError(f"Week start {day:02d}.{month:02d}. is not a date in {year}: {e}")


def _parse_week(week: Element, monday: date) -> List[Event]:
    events = []

    for row in _rows(week)[1:]:
        day_index = 0
        for column in row.children_matching("td"):
            css_class = column.classes[0] if column.classes else ""

            if css_class.startswith("week_separatorcell"):
                day_index += 1
            if css_class != "week_block":
                continue

            events.append(_parse_event(column, monday + timedelta(days=day_index)))

    return events


def _parse_event(block: Element, day: date) -> Event:
    anchor = block.find("a")
    if anchor is None:
        raise MalformedCalendarError(f"Event block on {day} has no details")

    segments = anchor.text_segments("br")
    if len(segments) < 2:
        raise MalformedCalendarError(f"Event block on {day} has no title")

    try:
        start, end = parse_time_range(segments[0])
    except ValueError as e:
        raise MalformedCalendarError(f"Event block on {day}: {e}")

    resources = block.find_all("span", class_="resource")
    location = resources[1].text().strip() if len(resources) > 1 else None

    persons = [
        person.text().strip().rstrip(",").strip()
        for person in block.find_all("span", class_="person")
    ]
    organizer = ", ".join(person for person in persons if person) or None

    return Event(
        date=day,
        start=start,
        end=end,
        title=segments[1].strip(),
        location=location or None,
        organizer=organizer,
    )

"""
Extractor interface

An extractor turns a resource key into a Calendar, or raises an
ExtractionError. Calls are blocking and must not share state between keys.
"""

from typing import Protocol

from rapla_proxy.models import Calendar


class Extractor(Protocol):
    def extract(self, key: str) -> Calendar:
        ...

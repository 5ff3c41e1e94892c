from rapla_proxy.extractors.rapla.client import RaplaExtractor
from rapla_proxy.extractors.rapla.parser import parse_calendar

__all__ = ["RaplaExtractor", "parse_calendar"]

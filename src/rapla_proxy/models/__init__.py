from rapla_proxy.models.calendar import Calendar, Event

__all__ = ["Calendar", "Event"]

"""
Rapla Proxy Constants
"""

import pytz


class APP_SETTINGS:
    """Application metadata"""
    APP_NAME = "Rapla Proxy"
    VERSION = "1.0.0"
    DESCRIPTION = "Serves a Rapla calendar as an iCalendar document"


class HTTP_SETTINGS:
    """Request gate and response settings"""
    ALLOWED_METHOD = "GET"
    ROUTED_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE"]
    METHOD_NOT_ALLOWED_MESSAGE = "Method not allowed"
    ICAL_MEDIA_TYPE = "text/calendar"
    JSON_MEDIA_TYPE = "application/json"


class RAPLA_SETTINGS:
    """Upstream Rapla calendar view"""
    DEFAULT_URL = "https://rapla.dhbw.de/rapla/calendar"
    DEFAULT_KEY = "woo"
    DEFAULT_PAGES = 104
    DEFAULT_LOOKBACK_DAYS = 365
    USER_AGENT = f"rapla-proxy/{APP_SETTINGS.VERSION}"


class ICAL_SETTINGS:
    """iCalendar document settings"""
    VERSION = "2.0"
    TIMEZONE_ID = "Europe/Berlin"
    STANDARD_NAME = "CET"
    DAYLIGHT_NAME = "CEST"


# Rapla renders all times as Berlin wall-clock time
BERLIN_TIMEZONE = pytz.timezone(ICAL_SETTINGS.TIMEZONE_ID)

"""
Build-time values and helper functions available to every template.

Both engines see ``date`` and ``it.date`` (the build timestamp, fixed for the
whole run) plus a ``helpers`` mapping. EJS-style templates call helpers as
ordinary functions, ``<%= helpers.uppercase(title) %>``. Mustache has no call
syntax, so its helpers are section lambdas applied to the rendered section
body, ``{{#helpers.uppercase}}{{title}}{{/helpers.uppercase}}``, and
``helpers.now`` is the timestamp itself.
"""

import json
import re
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, Optional

from .renderer import EJS, MUSTACHE

DEFAULT_DATE_FORMAT = 'MM/DD/YYYY'
DEFAULT_TRUNCATE_LENGTH = 100


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso_timestamp(moment: datetime) -> str:
    """UTC timestamp with millisecond precision, e.g. ``2024-05-01T09:30:00.000Z``."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def capitalize(text) -> str:
    text = str(text)
    return text[:1].upper() + text[1:].lower()


def lowercase(text) -> str:
    return str(text).lower()


def uppercase(text) -> str:
    return str(text).upper()


def truncate(text, length: int = DEFAULT_TRUNCATE_LENGTH, suffix: str = '...') -> str:
    text = str(text)
    return text[:length] + suffix if len(text) > length else text


def slugify(text) -> str:
    return re.sub(r'[^a-z0-9]+', '-', str(text).lower()).strip('-')


def parse_date(value) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = str(value).strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    return datetime.fromisoformat(text)


def format_date(value, fmt: str = DEFAULT_DATE_FORMAT) -> str:
    """Format a date using the ``MM``, ``DD``, ``YYYY``, ``HH`` and ``mm`` tokens.

    Values that do not parse as ISO dates are returned unchanged.
    """
    try:
        moment = parse_date(value)
    except ValueError:
        return str(value)
    return (fmt.replace('MM', f'{moment.month:02d}')
               .replace('DD', f'{moment.day:02d}')
               .replace('YYYY', str(moment.year))
               .replace('HH', f'{moment.hour:02d}')
               .replace('mm', f'{moment.minute:02d}'))


def to_json(value) -> str:
    return json.dumps(value, indent=2, default=str)


def length(value) -> int:
    return len(value)


def _section(fn: Callable[[str], Any]) -> Callable[[str, Callable[[str], str]], str]:
    def section(text, render):
        return str(fn(render(text)))
    return section


def ejs_helpers(timestamp: str) -> Dict[str, Any]:
    return {
        'now': lambda: timestamp,
        'formatDate': format_date,
        'capitalize': capitalize,
        'lowercase': lowercase,
        'uppercase': uppercase,
        'truncate': truncate,
        'slugify': slugify,
        'json': to_json,
        'length': length,
    }


def mustache_helpers(timestamp: str) -> Dict[str, Any]:
    return {
        'now': timestamp,
        'formatDate': _section(format_date),
        'capitalize': _section(capitalize),
        'lowercase': _section(lowercase),
        'uppercase': _section(uppercase),
        'truncate': _section(truncate),
        'slugify': _section(slugify),
        'json': _section(to_json),
        'length': _section(length),
    }


HELPER_FACTORIES = {
    MUSTACHE: mustache_helpers,
    EJS: ejs_helpers,
}


def template_globals(kind: str = MUSTACHE, build_time: Optional[datetime] = None) -> Dict[str, Any]:
    """The ``date``, ``it`` and ``helpers`` entries for a template of ``kind``."""
    timestamp = iso_timestamp(build_time or utc_now())
    return {
        'date': timestamp,
        'it': {'date': timestamp},
        'helpers': HELPER_FACTORIES.get(kind, mustache_helpers)(timestamp),
    }

"""Tag value types shared by the readers."""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional


# 2024:01:15 10:30:45[.123][Z|+01:00]
_DATETIME_RE = re.compile(
    r"^(?P<y>\d{4}):(?P<mo>\d{2}):(?P<d>\d{2})"
    r"(?:[ T](?P<h>\d{2}):(?P<mi>\d{2})(?::(?P<s>\d{2}))?(?:\.(?P<frac>\d+))?)?"
    r"\s*(?P<tz>Z|[+-]\d{2}:?\d{2})?$"
)


@dataclass(frozen=True, slots=True)
class ExifDateTime:
    """A date/time tag value in EXIF notation.

    Exposes ``to_date()`` so the serializer can turn it into an ISO
    instant. Values without a timezone are local times.
    """
    raw: str
    value: datetime | date

    @classmethod
    def parse(cls, text: str) -> Optional["ExifDateTime"]:
        """Parse an exiftool date string, or return None if it isn't one."""
        match = _DATETIME_RE.match(text.strip())
        if not match:
            return None
        parts = match.groupdict()
        try:
            if parts["h"] is None:
                return cls(text, date(int(parts["y"]), int(parts["mo"]), int(parts["d"])))
            micro = int((parts["frac"] or "0")[:6].ljust(6, "0"))
            tzinfo = _parse_offset(parts["tz"])
            value = datetime(
                int(parts["y"]), int(parts["mo"]), int(parts["d"]),
                int(parts["h"]), int(parts["mi"]), int(parts["s"] or 0),
                micro, tzinfo=tzinfo,
            )
        except ValueError:
            # 0000:00:00 00:00:00 and friends
            return None
        return cls(text, value)

    def to_date(self) -> datetime | date:
        return self.value

    def __str__(self) -> str:
        return self.raw


def _parse_offset(text: Optional[str]) -> Optional[timezone]:
    if not text:
        return None
    if text == "Z":
        return timezone.utc
    sign = -1 if text[0] == "-" else 1
    digits = text[1:].replace(":", "")
    offset = timedelta(hours=int(digits[:2]), minutes=int(digits[2:4]))
    return timezone(sign * offset)


def convert_date_tags(raw: dict[str, Any]) -> dict[str, Any]:
    """Wrap date strings of *Date*/*Time* tags as ExifDateTime."""
    tags: dict[str, Any] = {}
    for name, value in raw.items():
        if isinstance(value, str) and ("Date" in name or "Time" in name):
            parsed = ExifDateTime.parse(value)
            if parsed is not None:
                tags[name] = parsed
                continue
        tags[name] = value
    return tags

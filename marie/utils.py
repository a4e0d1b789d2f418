from __future__ import annotations

import datetime as dt


def site_url(domain: str) -> str:
    return f"https://{domain}"


def join_url(base: str, path: str) -> str:
    base = base.rstrip("/")
    path = path.lstrip("/")
    if not path:
        return base
    return f"{base}/{path}"


def rfc2822_date(value: dt.datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt.timezone.utc)
    return value.strftime("%a, %d %b %Y %H:%M:%S %z")


def iso_day(value: dt.datetime) -> str:
    return value.strftime("%Y-%m-%d")


import datetime as dt

def iso_utc(d: dt.datetime) -> str:
    if d.tzinfo is None:
        d = d.replace(tzinfo=dt.timezone.utc)
    return d.astimezone(dt.timezone.utc).isoformat().replace("+00:00", "Z")

def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)

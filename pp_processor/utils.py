from datetime import UTC, datetime


def utcnow() -> datetime:
    # Both databases store naive UTC timestamps.
    return datetime.now(tz=UTC).replace(tzinfo=None)


def sort_alphabet(text: str) -> str:
    return "".join(sorted(text))

from datetime import datetime


def now() -> datetime:
    # Naive wall clock, same convention as every stored scheduling instant
    return datetime.now().replace(microsecond=0)


def today():
    return now().date()

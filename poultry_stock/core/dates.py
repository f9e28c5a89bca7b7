from datetime import date, datetime, timedelta


def normalize_date(value):
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        value_text = value.strip()
        if not value_text:
            return None
        try:
            return date.fromisoformat(value_text)
        except ValueError:
            pass
        # API timestamps arrive as "2024-05-01T00:00:00.000Z".
        try:
            return datetime.fromisoformat(value_text.replace("Z", "+00:00")).date()
        except ValueError:
            return None
    return None


def previous_day(value):
    normalized = normalize_date(value)
    if normalized is None:
        return None
    return normalized - timedelta(days=1)


def month_bounds(year, month):
    start = date(int(year), int(month), 1)
    if start.month == 12:
        end = date(start.year + 1, 1, 1) - timedelta(days=1)
    else:
        end = date(start.year, start.month + 1, 1) - timedelta(days=1)
    return start, end

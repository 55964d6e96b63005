"""Formatting utilities for display."""


def format_duration(seconds: float | None) -> str:
    """Format seconds as Xh Ym Zs string, or '-' when unknown."""
    if seconds is None:
        return "-"
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)
    return f"{hours}h {minutes:02d}m {secs:02d}s"


def format_distance(meters: float) -> str:
    km = meters / 1000
    return f"{km:.2f} km ({km * 0.621371:.2f} mi)"


def format_elevation(meters: float | None) -> str:
    if meters is None:
        return "-"
    return f"{meters:.0f} m ({meters * 3.28084:.0f} ft)"


def format_speed(mps: float | None) -> str:
    if mps is None:
        return "-"
    kmh = mps * 3.6
    return f"{kmh:.1f} km/h ({kmh * 0.621371:.1f} mph)"

"""Helpers for human readable CLI output."""


def format_duration(seconds: float) -> str:
    """Format duration in seconds to human readable string."""
    if seconds < 1:
        return f"{seconds * 1000:.2f}ms"
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes = int(seconds / 60)
    seconds = seconds % 60
    if minutes < 60:
        return f"{minutes}m {seconds:.1f}s"
    hours = int(minutes / 60)
    minutes = minutes % 60
    return f"{hours}h {minutes}m {seconds:.1f}s"


def format_speedup(serial_ms: float, parallel_ms: float) -> str:
    """Speedup of the parallel run relative to the serial one."""
    if parallel_ms <= 0:
        return "n/a"
    return f"{serial_ms / parallel_ms:.2f}x"


def format_ranked(pairs, value_format: str = "{:,}", limit: int = None) -> list:
    """Numbered lines for (label, value) pairs."""
    lines = []
    for i, (label, value) in enumerate(pairs[:limit] if limit else pairs, start=1):
        lines.append(f"{i:>2}. {label:<30} {value_format.format(value):>18}")
    return lines

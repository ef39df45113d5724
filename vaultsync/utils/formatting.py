"""Human-readable size formatting."""

_UNITS = ["B", "KB", "MB", "GB", "TB"]


def format_size(num_bytes: int) -> str:
    """Format a byte count using 1024 steps and at most two decimals (``1.5 KB``)."""
    if num_bytes <= 0:
        return "0 B"
    exponent = 0
    while num_bytes >= 1024 ** (exponent + 1) and exponent < len(_UNITS) - 1:
        exponent += 1
    value = round(num_bytes / (1024 ** exponent), 2)
    rendered = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{rendered} {_UNITS[exponent]}"

from __future__ import annotations


def safe_html(text: str) -> str:
    """Escape special HTML characters so dynamic content is safe in HTML parse_mode."""
    return str(text).replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def fmt_price(v: float) -> str:
    """Human-readable price for summary text: $68.1k, $1.23M, $142.3"""
    if v >= 1_000_000:
        return f"${v / 1_000_000:.2f}M"
    if v >= 10_000:
        return f"${v / 1_000:.1f}k"
    if v >= 1_000:
        return f"${v / 1_000:.2f}k"
    if v >= 100:
        return f"${v:.1f}"
    if v >= 10:
        return f"${v:.2f}"
    if v >= 1:
        return f"${v:.3f}"
    if v >= 0.01:
        return f"${v:.4f}"
    return f"${v:.6f}"


def fmt_big(v: float) -> str:
    """Compact volume / market cap: 1.2B, 340.5M, 12.0k"""
    if v >= 1_000_000_000:
        return f"{v / 1_000_000_000:.2f}B"
    if v >= 1_000_000:
        return f"{v / 1_000_000:.1f}M"
    if v >= 1_000:
        return f"{v / 1_000:.1f}k"
    return f"{v:.0f}"


def fmt_threshold(v: float | None) -> str:
    if v is None:
        return "-"
    if float(v).is_integer():
        return f"{v:,.0f}"
    return f"{v:,.4f}".rstrip("0").rstrip(".")

def fmt_pct(x: float) -> str:
    return f"{x:.2f}%"

def fmt_usd(x: float) -> str:
    sign = "-" if x < 0 else ""
    return f"{sign}${abs(x):,.2f}"

def fmt_level(value: str) -> str:
    return "N/A" if value == "N/A" else f"{value}%"

def fmt_wtp_row(attribute: str, wtp: float, se: float, p: float) -> str:
    return f"{attribute}: {fmt_usd(wtp)} (SE {se:.2f}, p={p:.3f})"

# Bar colours per uptake tier (red / amber / green)
TIER_COLORS = {
    "low": "rgba(231, 76, 60, 0.6)",
    "moderate": "rgba(241, 196, 15, 0.6)",
    "high": "rgba(39, 174, 96, 0.6)",
}

def tier_color(tier: str) -> str:
    return TIER_COLORS[tier]

def wtp_color(wtp: float) -> str:
    # positive: willing to pay; negative: needs compensation
    return "rgba(52, 152, 219, 0.6)" if wtp >= 0 else "rgba(231, 76, 60, 0.6)"

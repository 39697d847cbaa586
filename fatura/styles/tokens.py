from __future__ import annotations

"""Design tokens for the Fatura UI and the printed page.

- Keep colors calm and neutral; the invoice theme supplies the only accent.
- Spacing scale uses 4px multiples.
"""


class Colors:
    # Application chrome
    bg = "#f8fafc"
    card = "#ffffff"
    text = "#1e293b"
    subtext = "#475569"
    border = "#e2e8f0"
    input_border = "#cbd5e1"
    primary = "#2563eb"
    error = "#b91c1c"

    # Preview backdrop around the page
    stage = "#e2e8f0"

    # Printed page
    page = "#ffffff"
    ink = "#1f2937"
    ink_muted = "#4b5563"
    ink_faint = "#d1d5db"
    badge_bg = "#f3f4f6"
    badge_border = "#d1d5db"
    discount = "#ef4444"
    row_rule = "#f3f4f6"


class Radius:
    sm = 6
    md = 10


class Space:
    xs = 4
    sm = 8
    md = 12
    lg = 16
    xl = 24

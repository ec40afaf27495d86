"""
Outlet Tiers

Coarse prominence ranking of publications, used in judge context and to
segment calibration statistics. Unknown outlets are tier 3.
"""

from typing import Optional

TIER_1_OUTLETS = frozenset([
    "NYT", "VARIETY", "THR", "VULT", "WASHPOST", "WSJ", "GUARDIAN",
    "TIMEOUTNY", "BWAYNEWS", "LATIMES", "AP",
])

TIER_2_OUTLETS = frozenset([
    "NYP", "CHTRIB", "USATODAY", "NYDN", "EW", "INDIEWIRE", "DEADLINE",
    "OBSERVER", "TDB", "SLANT", "NYTHTR", "NYTG", "NYSR", "TMAN", "THLY",
    "BWAYJOURNAL", "STAGEBUDDY", "WRAP",
])

TIER_NAMES = {
    1: "Tier 1 (major publication)",
    2: "Tier 2 (notable outlet)",
    3: "Tier 3 (smaller outlet)",
}


def get_outlet_tier(outlet_id: Optional[str]) -> int:
    """Tier 1, 2 or 3 for an outlet id (case-insensitive)."""
    if not outlet_id:
        return 3
    key = outlet_id.strip().upper()
    if key in TIER_1_OUTLETS:
        return 1
    if key in TIER_2_OUTLETS:
        return 2
    return 3


def tier_name(tier: int) -> str:
    return TIER_NAMES.get(tier, "Unknown tier")

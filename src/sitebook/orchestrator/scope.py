"""Production scope derivation from estimate line items.

When a contract is signed the priced estimate becomes production work: one
loop per trade, one task per line item, ordered by the typical construction
sequence. This module is the pure half of that step; the persistence
gateway writes the resulting plan.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

TRADE_ORDER: tuple[str, ...] = (
    "SW",  # Site Work
    "FN",  # Foundation
    "FS",  # Structural Framing
    "FI",  # Interior Framing
    "RF",  # Roofing
    "EE",  # Exterior Envelope
    "WD",  # Windows & Doors
    "IA",  # Insulation & Air Sealing
    "EL",  # Electrical
    "PL",  # Plumbing
    "HV",  # HVAC
    "DW",  # Drywall
    "PT",  # Painting
    "FL",  # Flooring
    "TL",  # Tile
    "FC",  # Finish Carpentry
    "CM",  # Cabinetry & Millwork
    "SR",  # Stairs & Railings
    "EF",  # Exterior Finishes
    "FZ",  # Final Completion
    "DM",  # Demo & Prep
    "GN",  # General
)

TRADE_NAMES: dict[str, str] = {
    "SW": "Site Work",
    "FN": "Foundation",
    "FS": "Structural Framing",
    "FI": "Interior Framing",
    "RF": "Roofing",
    "EE": "Exterior Envelope",
    "WD": "Windows & Doors",
    "IA": "Insulation & Air Sealing",
    "EL": "Electrical",
    "PL": "Plumbing",
    "HV": "HVAC",
    "DW": "Drywall",
    "PT": "Painting",
    "FL": "Flooring",
    "TL": "Tile",
    "FC": "Finish Carpentry",
    "CM": "Cabinetry & Millwork",
    "SR": "Stairs & Railings",
    "EF": "Exterior Finishes",
    "FZ": "Final Completion",
    "DM": "Demo & Prep",
    "GN": "General",
}

# First match wins, so order matters
TRADE_KEYWORDS: tuple[tuple[str, str], ...] = (
    ("electrical", "EL"),
    ("plumbing", "PL"),
    ("hvac", "HV"),
    ("drywall", "DW"),
    ("painting", "PT"),
    ("flooring", "FL"),
    ("tile", "TL"),
    ("cabinet", "CM"),
    ("millwork", "CM"),
    ("framing", "FS"),
    ("foundation", "FN"),
    ("roofing", "RF"),
    ("insulation", "IA"),
    ("demo", "DM"),
    ("site", "SW"),
    ("exterior", "EF"),
    ("finish", "FC"),
    ("carpentry", "FC"),
    ("stair", "SR"),
    ("window", "WD"),
    ("door", "WD"),
)

DEFAULT_TRADE = "GN"
DEFAULT_TIER = "better"
DEFAULT_TASK_PRIORITY = 2


@dataclass
class TaskPlan:
    """One production task derived from an estimate line item."""

    title: str
    trade_code: str
    display_order: int
    budgeted_amount: float
    quantity: float
    description: str | None = None
    location: str | None = None
    subcategory_code: str | None = None
    estimate_line_item_id: str | None = None
    priority: int = DEFAULT_TASK_PRIORITY


@dataclass
class LoopPlan:
    """One trade loop with its tasks."""

    name: str
    trade_code: str
    display_order: int
    budgeted_amount: float
    tasks: list[TaskPlan] = field(default_factory=list)


def infer_trade_code(item: Mapping[str, Any]) -> str:
    """Pick a trade code for a line item.

    An explicit ``tradeCode`` wins; otherwise the first keyword found in the
    category and name, falling back to the general trade.
    """
    explicit = item.get("tradeCode")
    if explicit:
        return str(explicit)
    text = f"{item.get('category') or ''} {item.get('name') or ''}".lower()
    for keyword, code in TRADE_KEYWORDS:
        if keyword in text:
            return code
    return DEFAULT_TRADE


def _price_key(tier: str) -> str:
    return f"unitPrice{tier[:1].upper()}{tier[1:]}"


def line_item_amount(item: Mapping[str, Any], tier: str = DEFAULT_TIER) -> float:
    """Tier unit price times quantity, falling back to the better tier."""
    unit_price = item.get(_price_key(tier or DEFAULT_TIER)) or item.get("unitPriceBetter") or 0
    return float(unit_price) * float(item.get("quantity") or 1)


def _trade_sort_key(code: str) -> tuple[int, int, str]:
    if code in TRADE_ORDER:
        return (0, TRADE_ORDER.index(code), code)
    return (1, 0, code)


def _task_title(item: Mapping[str, Any]) -> str:
    name = str(item.get("name") or "")
    room = item.get("roomLabel")
    if room and room != name:
        return f"{name} - {room}"
    return name


def plan_scope(
    line_items: list[Mapping[str, Any]] | None,
    tier: str = DEFAULT_TIER,
) -> list[LoopPlan]:
    """Group estimate line items into ordered trade loops.

    Args:
        line_items: Estimate line items.
        tier: Build tier whose unit prices are used (good, better, best).

    Returns:
        One LoopPlan per trade in construction order; empty when there are
        no line items.
    """
    if not line_items:
        return []

    groups: dict[str, list[Mapping[str, Any]]] = {}
    for item in line_items:
        groups.setdefault(infer_trade_code(item), []).append(item)

    loops = []
    for loop_order, code in enumerate(sorted(groups, key=_trade_sort_key), start=1):
        tasks = [
            TaskPlan(
                title=_task_title(item),
                trade_code=code,
                display_order=task_order,
                budgeted_amount=line_item_amount(item, tier),
                quantity=float(item.get("quantity") or 1),
                description=item.get("description") or None,
                location=item.get("roomLabel") or None,
                subcategory_code=item.get("subCode") or None,
                estimate_line_item_id=str(item["id"]) if item.get("id") is not None else None,
            )
            for task_order, item in enumerate(groups[code], start=1)
        ]
        loops.append(
            LoopPlan(
                name=TRADE_NAMES.get(code, code),
                trade_code=code,
                display_order=loop_order,
                budgeted_amount=sum(task.budgeted_amount for task in tasks),
                tasks=tasks,
            )
        )
    return loops

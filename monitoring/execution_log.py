"""
Scripted execution playback.

Purely illustrative: builds the eight-step log a dashboard shows when an
opportunity is "executed". No order is placed, nothing touches a venue.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Optional, Tuple

from core.constants import ExecutionStatus
from core.format_money import format_money, format_usd
from core.models import ExecutionLog, Opportunity
from core.time import now_utc

FLASH_LOAN_FEE_PCT = Decimal("0.09")


def playback_steps(opportunity: Opportunity) -> List[Tuple[str, int]]:
    """(message, offset_ms) pairs for the playback."""
    return [
        ("Initializing Flash Loan Contract...", 800),
        (f"Borrowing {format_money(opportunity.amount, 2)} {opportunity.token} from Aave V3 Pool...", 1800),
        (f"Executing Buy Order on {opportunity.buy_venue} @ ${format_money(opportunity.buy_price, 2)}...", 2800),
        ("Bridging Assets via LayerZero...", 4500),
        (f"Executing Sell Order on {opportunity.sell_venue} @ ${format_money(opportunity.sell_price, 2)}...", 5800),
        (f"Repaying Flash Loan + {FLASH_LOAN_FEE_PCT}% Fee...", 6500),
        ("Verifying Transaction Finality...", 7200),
        (f"PROFIT SECURED: {format_usd(opportunity.net_profit)}", 8000),
    ]


def build_playback(
    opportunity: Opportunity,
    started_at: Optional[datetime] = None,
) -> List[ExecutionLog]:
    """
    Build the playback log for an opportunity.

    Every step but the last is "processing"; the last is "completed".
    Timestamps are started_at plus each step's scripted offset.
    """
    started_at = started_at or now_utc()
    steps = playback_steps(opportunity)
    logs = []
    for index, (message, offset_ms) in enumerate(steps):
        last = index == len(steps) - 1
        logs.append(ExecutionLog(
            step=message,
            status=ExecutionStatus.COMPLETED if last else ExecutionStatus.PROCESSING,
            details=f"{opportunity.buy_venue} -> {opportunity.sell_venue}" if last else None,
            timestamp=started_at + timedelta(milliseconds=offset_ms),
        ))
    return logs


def print_playback(logs: List[ExecutionLog]) -> None:
    print("\n--- EXECUTION PLAYBACK (simulated) ---")
    for log in logs:
        print(f"  {log.timestamp.strftime('%H:%M:%S.%f')[:-3]} [{log.status.value}] {log.step}")

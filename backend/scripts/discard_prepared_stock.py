"""
End-of-day: zero every prepared-stock counter (waste clearing).

Consumed orders stay marked as consumed. Meant for a nightly cron:
  cd backend && python scripts/discard_prepared_stock.py
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from db.database import async_session_maker
from db.transactions import run_in_transaction
from services.ledger import PreparedStockLedger


async def main() -> None:
    async with async_session_maker() as db:
        ledger = PreparedStockLedger(db)
        cleared = await run_in_transaction(db, ledger.discard_all)
        print(f"Discarded prepared stock for {cleared} menu items")


if __name__ == "__main__":
    asyncio.run(main())

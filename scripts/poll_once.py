import sys
from pathlib import Path
sys.path.append(str(Path(__file__).resolve().parents[1]))

import asyncio

from marketboard.services.currency_catalog import currency_decimals
from marketboard.services.formatting import format_row
from marketboard.services.market_store import MarketStore


async def main():
    store = MarketStore()
    try:
        await store.fetch_currencies()
        await store.fetch_market()
        if store.state.error:
            print("❌ fetch failed:", store.state.error)
            return

        base = store.state.base_currency
        for row in store.view:
            quote = row.name.partition("/")[2] or base
            r = format_row(row, quote, currency_decimals(store.state.currency_meta, quote))
            print(f"{r['rank']:>3}  {r['name']:<12} {r['price']:>16} {r['change24h']:>8}  vol {r['volume']}")
        print("✅ rows:", len(store.state.coins), "| updated:", store.state.last_updated)
    finally:
        await store.dispose()


if __name__ == "__main__":
    asyncio.run(main())

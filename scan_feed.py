"""
Scan a saved marketplace page through the proxy and print profit badges.

Usage:
    python scan_feed.py marketplace.html
    python scan_feed.py marketplace.html --token <bearer token> --save-token
    python scan_feed.py marketplace.html --login you@example.com <subscription key>
"""

import argparse
import asyncio
import logging
from pathlib import Path

from config import API_BASE_URL, SETTINGS_PATH
from pipeline.scanner import HtmlSnapshotSource, build_scanner
from services.exceptions import ProxyException
from services.proxy_client import ProxyClient
from services.session import JsonFileStore, SessionContext

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(message)s',
    datefmt='%H:%M:%S'
)
logger = logging.getLogger("scan_feed")

DEFAULT_PAGE_URL = "https://www.facebook.com/marketplace/"


async def run(args) -> int:
    session = await SessionContext.load(JsonFileStore(Path(args.settings)))

    if args.token:
        session.update_settings(api_token=args.token)
        if args.save_token:
            await session.save()

    client = ProxyClient(
        token=session.settings.api_token,
        base_url=args.proxy,
        on_call=session.record_api_call,
    )

    async with client:
        if args.login:
            email, key = args.login
            try:
                data = await client.login(email, key)
            except ProxyException as e:
                print(f"[LOGIN] Failed: {e}")
                return 1
            session.update_settings(api_token=data["token"])
            await session.save()
            print(f"[LOGIN] Signed in as {data['user']['email']} ({data['user']['plan']})")

        if not session.settings.api_token:
            print("[SCAN] No API token. Use --token or --login first.")
            return 1

        source = HtmlSnapshotSource.from_file(Path(args.html), args.page_url)
        scanner = build_scanner(session, client)
        scanner.start()
        try:
            if args.clear_cache:
                await scanner.clear_cache()
            await scanner.scan(source)
            await scanner.wait_idle()
        finally:
            await scanner.close()

    print("\n" + "=" * 70)
    print("SCAN RESULTS")
    print("=" * 70)
    for view in scanner.views.values():
        if view.record is None:
            continue
        badge = view.badge
        label = f"{badge.text} | {badge.details}" if badge else "(hidden)"
        deal = " *" if badge and badge.is_deal else ""
        print(f"   ${view.record.price:>8} | {view.record.title[:40]:<40} | {label}{deal}")

    stats = session.stats
    print("\n" + "-" * 70)
    print(f"   Analyzed: {stats.listings_analyzed}  Deals: {stats.profitable_deals}  "
          f"Potential profit: ${stats.total_potential_profit}")
    print(f"   API calls this month: {stats.api_usage_count}/{session.usage_limit}")
    if session.usage_warning:
        print("   WARNING: approaching the monthly API limit")
    return 0


def main():
    parser = argparse.ArgumentParser(description="Offline marketplace scan")
    parser.add_argument("html", help="Saved marketplace page")
    parser.add_argument("--page-url", default=DEFAULT_PAGE_URL)
    parser.add_argument("--proxy", default=API_BASE_URL)
    parser.add_argument("--settings", default=str(SETTINGS_PATH))
    parser.add_argument("--token")
    parser.add_argument("--save-token", action="store_true")
    parser.add_argument("--login", nargs=2, metavar=("EMAIL", "KEY"))
    parser.add_argument("--clear-cache", action="store_true", help="Reset session stats before scanning")
    args = parser.parse_args()

    try:
        raise SystemExit(asyncio.run(run(args)))
    except KeyboardInterrupt:
        print("\n[SCAN] Stopped by user (Ctrl+C)")


if __name__ == "__main__":
    main()

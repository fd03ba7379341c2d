"""
FlipFinder Proxy Server

Holds the eBay and language-model credentials server-side and gates every
call behind a subscription token and a monthly usage quota.

Endpoints:
- POST /api/auth/login       subscription key -> bearer token
- POST /api/search           sold listings (eBay Finding API)
- POST /api/enhance-title    more specific product name
- POST /api/analyze-image    product name from a photo
- GET  /health

Run:
    python main.py [--host 0.0.0.0] [--port 3000]
"""

import argparse
import logging

import uvicorn

from config import HOST, PORT, LOG_PATH, DEBUG_MODE

# ============================================================
# LOGGING SETUP
# ============================================================
LOG_FORMAT = '%(asctime)s [%(levelname)s] %(message)s'


def setup_logging(log_path=LOG_PATH, debug: bool = DEBUG_MODE) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=LOG_FORMAT,
        datefmt='%H:%M:%S'
    )
    if log_path:
        file_handler = logging.FileHandler(log_path, encoding='utf-8')
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logging.getLogger().addHandler(file_handler)


def main():
    parser = argparse.ArgumentParser(description="FlipFinder proxy server")
    parser.add_argument("--host", default=HOST)
    parser.add_argument("--port", type=int, default=PORT)
    args = parser.parse_args()

    setup_logging()

    from services.app_factory import create_app
    app = create_app()

    print("\n" + "=" * 60)
    print("FlipFinder Proxy Server")
    print("=" * 60)
    print(f"Listening on: http://{args.host}:{args.port}")
    print(f"Log file: {LOG_PATH}")
    print("=" * 60 + "\n")

    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()

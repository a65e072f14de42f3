import asyncio
import logging
import logging.handlers
from signaling.config import settings
from signaling.registry import Registry
from signaling.relay import Relay
from signaling.ws_server import run_ws_server

def setup_logging():
    loglevel = settings.LOG_LEVEL.upper()
    # main log goes to stdout
    logging.basicConfig(
        level=loglevel,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )
    # separate logger for per-message routing traces
    traffic_logger = logging.getLogger("traffic")
    traffic_logger.propagate = False
    if not settings.TRAFFIC_LOG:
        traffic_logger.disabled = True
        return
    handler = logging.handlers.RotatingFileHandler(
        settings.TRAFFIC_LOG, maxBytes=10 * 1024 * 1024, backupCount=3, encoding="utf-8"
    )
    handler.setFormatter(logging.Formatter("%(asctime)s | %(message)s"))
    traffic_logger.setLevel(logging.INFO)
    traffic_logger.addHandler(handler)

async def main():
    setup_logging()
    logging.info(f"Starting signaling relay on {settings.HOST}:{settings.PORT}")
    relay = Relay(Registry())
    await run_ws_server(relay, settings.HOST, settings.PORT, cors_origin=settings.CORS_ORIGIN)

if __name__ == "__main__":
    asyncio.run(main())

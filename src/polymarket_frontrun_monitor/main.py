from __future__ import annotations

import asyncio
import logging
import sys

from .config import load_settings
from .errors import AppError, ErrorKind
from .formatting import describe_signal
from .service import MonitorService
from .types import TradeSignal

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def log_signal(signal: TradeSignal) -> None:
    logger.info("Frontrun signal: %s", describe_signal(signal))


async def _main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)
    service = MonitorService(settings, log_signal)
    await service.run()


def main() -> None:
    try:
        asyncio.run(_main())
    except KeyboardInterrupt:
        pass
    except AppError as exc:
        if exc.kind is not ErrorKind.CONFIG:
            raise
        print(f"Configuration error: {exc}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()

"""Frozen-EXE launcher for the feed simulator; keeps the console open on a crash."""

import sys

from telemetry_app.utils.logger import get_logger

logger = get_logger("entrypoints")


def main() -> int:
    try:
        from feed_simulator.run_simulator import main as run
        run()
    except KeyboardInterrupt:
        return 0
    except Exception:
        logger.exception("feed simulator terminated with an error")
        input("\nPress Enter to exit...")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""Frozen-EXE launcher for the dashboard; keeps the console open on a crash."""

import sys

from telemetry_app.utils.logger import get_logger

logger = get_logger("entrypoints")


def main() -> int:
    try:
        from telemetry_app.dev.run_app import main as run
        run()
    except KeyboardInterrupt:
        return 0
    except Exception:
        logger.exception("dashboard terminated with an error")
        input("\nPress Enter to exit...")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

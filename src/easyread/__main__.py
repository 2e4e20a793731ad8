"""Run the API with uvicorn: `python -m easyread`."""

from __future__ import annotations

import uvicorn

from easyread.config import Settings
from easyread.obs.logging import configure_logging

APP_IMPORT_PATH = "easyread.api.main:app"


def main() -> None:
    settings = Settings()
    configure_logging(settings.log_level)

    # Import string: uvicorn loads the module-level app, the only instance.
    uvicorn.run(
        APP_IMPORT_PATH,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()

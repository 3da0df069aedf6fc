from __future__ import annotations

import uvicorn

from smoke_checks.app import create_app
from smoke_checks.log import configure_logging
from smoke_checks.settings import SmokeSettings


def main() -> None:
    settings = SmokeSettings()
    configure_logging(settings.log_level)
    app = create_app(settings)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level="info")


if __name__ == "__main__":
    main()

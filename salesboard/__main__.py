"""Run the service with uvicorn: ``python -m salesboard``."""

import uvicorn

from salesboard.core.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "salesboard.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":  # pragma: no cover - script entry point
    main()

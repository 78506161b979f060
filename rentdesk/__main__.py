"""Serve the rentdesk API: `python -m rentdesk` or the `rentdesk` script."""

import uvicorn

from rentdesk.config import get_settings


def main() -> None:
    """Run uvicorn with the host, port and worker count from `[api]`."""
    settings = get_settings()
    uvicorn.run(
        "rentdesk.api.app:app",
        host=settings.api.host,
        port=settings.api.port,
        workers=settings.api.workers,
        log_config=None,
    )


if __name__ == "__main__":
    main()

"""Run the API with uvicorn: python -m trustbridge."""

import uvicorn

from trustbridge.core.config import get_settings


def main() -> None:
    settings = get_settings()
    # Store locks are per process.
    uvicorn.run("trustbridge.app_factory:app", host=settings.host, port=settings.port, workers=1, log_config=None)


if __name__ == "__main__":
    main()

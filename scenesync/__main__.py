"""Run the API with uvicorn: ``python -m scenesync``."""

import os

import uvicorn


def main() -> None:
    uvicorn.run(
        "scenesync.main:app",
        host=os.environ.get("HOST", "127.0.0.1"),
        port=int(os.environ.get("PORT", "8787")),
        log_config=None,  # structlog owns the root logger
    )


if __name__ == "__main__":
    main()

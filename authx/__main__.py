"""Run the HTTP server: python -m authx"""

import uvicorn

from authx.config.settings import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "authx.api.main:app",
        host=settings.http_host,
        port=settings.http_port,
        log_config=None,
    )


if __name__ == "__main__":
    main()

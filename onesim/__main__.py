"""
Run the server: `python -m onesim` or the `onesim-server` console script.
"""

import uvicorn

from onesim.config import settings


def main() -> None:
    uvicorn.run(
        "onesim.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()

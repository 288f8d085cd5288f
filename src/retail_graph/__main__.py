"""Run the API server: ``python -m retail_graph``."""

from __future__ import annotations

import uvicorn

from retail_graph.api.app import create_app
from retail_graph.settings import Settings


def main() -> None:
    settings = Settings()
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()

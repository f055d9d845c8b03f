"""Run the API with uvicorn: ``python -m user_registry``."""

import uvicorn

from user_registry.config import settings


def main() -> None:
    uvicorn.run(
        "user_registry.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()

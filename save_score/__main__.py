import os

import uvicorn

from save_score.app import create_app
from save_score.config import Settings, configure_logging


def main():
    settings = Settings.from_env()
    configure_logging(settings.log_level)

    uvicorn.run(
        create_app(settings),
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
    )


if __name__ == "__main__":
    main()

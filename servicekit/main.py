import logging

import uvicorn

from servicekit.app import create_app
from servicekit.core.config import Configuration


def main() -> None:
    configuration = Configuration.from_env()

    # Configure logging
    logging.basicConfig(
        level=configuration.get_value("Logging:Level", "INFO").upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(),
        ]
    )

    app = create_app(configuration)
    uvicorn.run(
        app,
        host=configuration.get_value("Server:Host", "0.0.0.0"),
        port=configuration.get_int("Server:Port", 8080),
    )


if __name__ == "__main__":
    main()

import argparse
import os

import uvicorn

from chessroom.config import CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH, load_config


def main():
    parser = argparse.ArgumentParser(description='Run the chessroom server')
    parser.add_argument('--config', type=str, default=DEFAULT_CONFIG_PATH,
                        help='Path to configuration file')
    parser.add_argument('--host', type=str, default=None,
                        help='Host to bind (overrides config)')
    parser.add_argument('--port', type=int, default=None,
                        help='Port to bind (overrides config)')

    args = parser.parse_args()

    # The app loads its own configuration at startup.
    os.environ[CONFIG_ENV_VAR] = args.config
    config = load_config(args.config)

    uvicorn.run(
        "chessroom.web.app:app",
        host=args.host or config['server']['host'],
        port=args.port or config['server']['port']
    )


if __name__ == '__main__':
    main()

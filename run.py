import argparse

import uvicorn

from wgnexus.logging_utility import logger, setup_logging
from wgnexus.main import create_app
from wgnexus.settings import LogOutput, load_settings


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="WireGuard tunnel manager")
    parser.add_argument("--config", help="INI settings file with a [wgnexus] section")
    parser.add_argument("--log-level", help="Log severity (default: INFO)")
    parser.add_argument("--log-output", choices=[o.value for o in LogOutput],
                        help="Log output (default: syslog)")
    parser.add_argument("--host", help="Address to listen on")
    parser.add_argument("--port", type=int, help="Port to listen on")
    return parser.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)
    settings = load_settings(
        args.config,
        log_level=args.log_level,
        log_output=args.log_output,
        host=args.host,
        port=args.port,
    )
    setup_logging(settings)
    logger.info("Starting WireGuard Nexus application")
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == '__main__':
    main()

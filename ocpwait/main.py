# SPDX-License-Identifier: Apache-2.0

import os
import sys
from typing import List, Optional

from cliff.app import App
from cliff.commandmanager import CommandManager
from loguru import logger

from ocpwait import __version__, settings

# Constants
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<level>{message}</level>"
)
APP_DESCRIPTION = "Wait for OpenShift cluster resources to converge"
COMMAND_NAMESPACE = "ocpwait.commands"

VALID_LOG_LEVELS = ["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]


class AppConfig:
    """Logging and cluster connection settings of the ocpwait application.

    The kubeconfig and context become the defaults of the global
    ``--kubeconfig`` and ``--context`` options.
    """

    def __init__(self):
        self.log_level: str = os.getenv("OCPWAIT_LOG_LEVEL", DEFAULT_LOG_LEVEL)
        self.log_format: str = os.getenv("OCPWAIT_LOG_FORMAT", DEFAULT_LOG_FORMAT)
        self.log_colorize: bool = (
            os.getenv("OCPWAIT_LOG_COLORIZE", "true").lower() == "true"
        )
        self.kubeconfig: Optional[str] = settings.KUBECONFIG
        self.context: Optional[str] = settings.KUBE_CONTEXT
        self.api_url: Optional[str] = settings.KUBE_API_URL
        self.api_token: str = settings.KUBE_API_TOKEN
        self.version: str = __version__

    def validate(self) -> None:
        if self.log_level.upper() not in VALID_LOG_LEVELS:
            raise ValueError(
                f"Invalid log level: {self.log_level}. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
            )
        # An API URL without a token falls through to the kubeconfig in get_api_client
        if self.api_url and not self.api_token:
            raise ValueError(
                "OCPWAIT_API_URL is set but no token was found in OCPWAIT_API_TOKEN "
                "or /run/secrets/OCPWAIT_API_TOKEN"
            )
        if self.api_url and self.kubeconfig:
            logger.warning(
                f"Both OCPWAIT_API_URL and a kubeconfig are set, using {self.api_url}"
            )


def configure_logger(config: AppConfig) -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        format=config.log_format,
        level=config.log_level.upper(),
        colorize=config.log_colorize,
    )


class OcpWaitApp(App):
    def __init__(self):
        self.config = AppConfig()

        try:
            self.config.validate()
        except ValueError as e:
            logger.error(f"Configuration error: {e}")
            sys.exit(1)

        configure_logger(self.config)

        super(OcpWaitApp, self).__init__(
            description=APP_DESCRIPTION,
            version=self.config.version,
            command_manager=CommandManager(COMMAND_NAMESPACE),
            deferred_help=True,
        )

    def build_option_parser(self, description, version, argparse_kwargs=None):
        parser = super(OcpWaitApp, self).build_option_parser(
            description, version, argparse_kwargs
        )
        parser.add_argument(
            "--kubeconfig",
            default=self.config.kubeconfig,
            type=str,
            help="Path to the kubeconfig file of the cluster",
        )
        parser.add_argument(
            "--context",
            default=self.config.context,
            type=str,
            help="Context of the kubeconfig file to use",
        )
        return parser

    def prepare_to_run_command(self, cmd):
        logger.debug(f"Preparing to run command: {cmd.__class__.__name__}")

    def clean_up(self, cmd, result, err):
        if err:
            logger.error(f"Command failed with error: {err}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the ocpwait CLI.

    Args:
        argv: Command line arguments. Defaults to sys.argv[1:]

    Returns:
        Exit code
    """
    if argv is None:
        argv = sys.argv[1:]

    try:
        app = OcpWaitApp()
        return app.run(argv)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())

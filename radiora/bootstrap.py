import logging
from typing import Literal

import logfire

from radiora.utils.logging import LOG_TRACE_LEVEL, get_logger
logger = get_logger(__name__)

EnvironmentT = Literal['DEV', 'TEST', 'PROD']

logfire_instance = None
logfire_handler = None

def configure_logfire(environment_mode: EnvironmentT, service_name: str, send_to_logfire: bool | Literal['if-token-present'] = 'if-token-present'):
    global logfire_instance, logfire_handler

    level = "debug" if environment_mode == 'DEV' else "info"
    console_options = logfire.ConsoleOptions(min_log_level=level)

    logfire_instance = logfire.configure(
        service_name=service_name,
        environment=environment_mode,
        console=console_options,
        send_to_logfire=send_to_logfire,
    )

    handler = logfire.LogfireLoggingHandler()
    handler.setLevel(logging.DEBUG)
    logging.getLogger().addHandler(handler)
    logfire_handler = handler

def configure_logging(environment_mode: EnvironmentT, enable_console: bool = False, verbose: bool = False):
    level = logging.DEBUG if environment_mode == 'DEV' else logging.INFO
    if verbose:
        level = LOG_TRACE_LEVEL

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    if enable_console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        formatter = logging.Formatter("[{levelname}]\t{name}\t{message}", style="{")
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

def bootstrap(environment_mode: EnvironmentT, service_name: str = "RadioRA", verbose: bool = False):
    configure_logfire(environment_mode, service_name)
    # Logfire already prints to the console
    configure_logging(environment_mode, verbose=verbose)
    logger.debug(f"Bootstrapped {service_name} in {environment_mode} mode")

import sys

import click

from svclog.cli import pass_environment, CONTEXT_SETTINGS, Environment, parse_key_values
from svclog.constants import FAULT_MAPPING
from svclog.logging.levels import LogLevel, level_names


@click.command(context_settings=CONTEXT_SETTINGS)
@click.argument("message")
@click.option("-l", "--level", "record_level", default="info", show_default=True, metavar="", help="Record level.")
@click.option("-m", "--module", metavar="", help="Dotted module tag, e.g. api.users.")
@click.option("--meta", multiple=True, metavar="", help="Metadata as key=value, may be repeated.")
@click.pass_context
@pass_environment
def cli(
    environment: Environment, context: click.Context, message: str, record_level: str, module: str, meta, *args, **kwargs
):
    """Emit a single log record through the configured sinks"""
    try:
        level = LogLevel.parse(record_level)
    except ValueError:
        environment.elog(FAULT_MAPPING["invalid_level"].format(level=record_level, levels=", ".join(level_names())))
        sys.exit(1)
    metadata = parse_key_values(meta)

    logging_context = environment.setup_logging()
    logging_context.logger(module).emit(level, message, metadata)
    logging_context.close()

import sys

import click
import yaml
from humanfriendly import format_size
from serde import to_dict

from svclog.cli import pass_environment, CONTEXT_SETTINGS, Environment
from svclog.constants import FAULT_MAPPING
from svclog.logging.config import LoggingConfig


@click.command(context_settings=CONTEXT_SETTINGS)
@click.option("--sinks-only", is_flag=True, help="Only print the sink table.")
@click.pass_context
@pass_environment
def cli(environment: Environment, context: click.Context, sinks_only: bool):
    """Show the resolved logging configuration and sinks"""
    config = environment.load_config()
    is_valid, error = LoggingConfig.validate(config)
    if not is_valid:
        environment.elog(FAULT_MAPPING["invalid_config"].format(error=error))
        sys.exit(1)

    if not sinks_only:
        environment.log(yaml.safe_dump({"logging": config}, sort_keys=False).rstrip())
        environment.log("")

    environment.log("Sinks:")
    for sink in LoggingConfig.sink_configs(config):
        sink_dict = to_dict(sink)
        if sink.kind == "file":
            size = format_size(sink.max_bytes, binary=True)
            target = f"{config['log_dir']}/{sink.filename} (max {size}, keep {sink.max_files})"
        else:
            target = "stdout"
        environment.log(f"> {sink_dict['name']}: level<={sink_dict['level']} format={sink_dict['format']} -> {target}")

import sys

import click

from svclog.cli import pass_environment, CONTEXT_SETTINGS, Environment, parse_key_values
from svclog.logging.helpers import HEALTHY, log_health_check


@click.command(context_settings=CONTEXT_SETTINGS)
@click.argument("service")
@click.argument("status")
@click.option("--detail", multiple=True, metavar="", help="Check detail as key=value, may be repeated.")
@click.option("--fail-unhealthy", is_flag=True, help="Exit with code 1 when status is not healthy.")
@click.pass_context
@pass_environment
def cli(environment: Environment, context: click.Context, service: str, status: str, detail, fail_unhealthy: bool):
    """Log a health check result (healthy logs info, anything else error)"""
    details = parse_key_values(detail)

    logging_context = environment.setup_logging()
    log_health_check(service, status, logging_context.logger(), **details)
    logging_context.close()

    if fail_unhealthy and status != HEALTHY:
        sys.exit(1)

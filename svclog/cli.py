import sys
from pathlib import Path

import click
import yaml
from beartype.typing import Dict, Iterable, Optional

from svclog.constants import FAULT_MAPPING, MISSING_COMMAND_SLOGAN, TOOL_USAGE
from svclog.logging.config import LoggingConfig
from svclog.logging.structured_logger import LoggerFactory, LoggingContext

CONTEXT_SETTINGS = dict(auto_envvar_prefix="SVCLOG")

svclog_folder = Path(__file__).parent
cmd_folder = svclog_folder / "commands/"


class Environment:
    def __init__(self):
        self.config = None
        self.log_dir = None
        self.level = None
        self.service_name = None
        self.environment = None
        self.console = None
        self.http = None
        self.silent = None
        self.context: Optional[LoggingContext] = None

    def log(self, msg: str, new_line=True, *args):
        """Logs a message to stdout only is silent mode is disabled."""
        if not self.silent:
            if args:
                msg %= args
            click.echo(msg, file=sys.stdout, nl=new_line)

    @staticmethod
    def elog(msg: str, new_line=True, *args):
        """Logs a message to stderr."""
        if args:
            msg %= args
        click.echo(msg, file=sys.stderr, nl=new_line)

    def set_parameters(self, context: click.core.Context):
        """Copies global options from the click context onto the environment."""
        for param, value in context.params.items():
            setattr(self, param, value)

    def load_config(self) -> dict:
        """Resolves logging configuration: options > environment > config file > defaults."""
        return LoggingConfig.load(
            self.config,
            log_dir=self.log_dir,
            level=self.level,
            service_name=self.service_name,
            environment=self.environment,
            console=self.console,
            http=self.http,
        )

    def setup_logging(self) -> LoggingContext:
        """Builds the logging pipeline and installs it as the default. Exits with code 1 on bad configuration."""
        config = self.load_config()
        is_valid, error = LoggingConfig.validate(config)
        if not is_valid:
            self.elog(FAULT_MAPPING["invalid_config"].format(error=error))
            sys.exit(1)
        self.context = LoggerFactory.install(LoggingConfig.build_context(config))
        return self.context


pass_environment = click.make_pass_decorator(Environment, ensure=True)


def parse_key_values(items: Iterable[str]) -> Dict[str, object]:
    """
    Parses key=value pairs given on the command line.

    Values are read as YAML scalars, so numbers and booleans keep their type.
    """
    parsed = {}
    for item in items:
        if "=" not in item:
            raise click.BadParameter(FAULT_MAPPING["invalid_meta"].format(item=item))
        key, value = item.split("=", 1)
        try:
            parsed[key.strip()] = yaml.safe_load(value) if value else ""
        except yaml.YAMLError:
            parsed[key.strip()] = value
    return parsed


class SVCLOG(click.Group):
    def __init__(self, *args, **kwargs):
        # invoke_without_command=True to print usage when starting without parameters
        click.Group.__init__(self, *args, invoke_without_command=True, **kwargs)

    def list_commands(self, context: click.Context):
        commands = []
        for filename in cmd_folder.iterdir():
            if filename.name.endswith(".py") and filename.name.startswith("cmd_"):
                commands.append(filename.name[4:-3])
        commands.sort()
        return commands

    def get_command(self, context: click.Context, name: str):
        try:
            mod = __import__(f"svclog.commands.cmd_{name}", None, None, ["cli"])
        except ImportError:
            return None
        return mod.cli


@click.command(cls=SVCLOG, context_settings=CONTEXT_SETTINGS)
@click.pass_context
@pass_environment
@click.option("-c", "--config", type=click.Path(), metavar="", help="Optional path to a YAML logging config file.")
@click.option("--log-dir", metavar="", help="Directory for log files.")
@click.option("--level", metavar="", help="Minimum level (error, warn, info, http, verbose, debug, silly).")
@click.option("--service-name", metavar="", help="Service name attached to every record.")
@click.option("--environment", metavar="", help="Environment designation, e.g. production.")
@click.option("--console/--no-console", default=None, help="Force console output on or off.")
@click.option("--http", is_flag=True, default=None, help="Also write http.log.")
@click.option("-s", "--silent", flag_value=True, is_flag=True, help="Silence stdout", default=False)
def cli(env: Environment, context: click.core.Context, *args, **kwargs):
    """svclog - service logging pipeline"""
    if not sys.argv[1:]:
        click.echo(TOOL_USAGE)
        sys.exit(0)

    # This check is due to usage of invoke_without_command=True in SVCLOG class.
    if not context.invoked_subcommand:
        click.echo(MISSING_COMMAND_SLOGAN)
        sys.exit(2)

    env.set_parameters(context)

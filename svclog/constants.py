import svclog

TOOL_VERSION = f"""svclog v{svclog.__version__}
Copyright 2025 svclog contributors"""

TOOL_USAGE = f"""{TOOL_VERSION}
Supported and loaded modules:
    - emit: emit a single log record through the configured sinks
    - health: log a health check result
    - config: show the resolved logging configuration
    - demo: exercise every domain logger once"""

MISSING_COMMAND_SLOGAN = """Usage: svclog [OPTIONS] COMMAND [ARGS]...\nTry 'svclog --help' for help.
\nError: Missing command."""

FAULT_MAPPING = dict(
    invalid_level="Invalid log level '{level}'. Must be one of: {levels}",
    invalid_meta="Metadata must be given as key=value, got '{item}'.",
    invalid_config="Invalid logging configuration: {error}",
    yaml_file_parse_issue="Error occurred while parsing yaml file ({file_path}). "
    "Make sure that structure of a file is correct.",
    file_open_issue="Error occurred while opening the file ({file_path}). "
    "Make sure that the file exists or the path is correct.",
    log_dir_issue="Warning: unable to create log directory {log_dir} ({error}), file logging disabled",
)

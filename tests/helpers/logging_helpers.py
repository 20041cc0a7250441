import json
from io import StringIO

from svclog.logging.formatters import JsonFormatter
from svclog.logging.record import ServiceIdentity
from svclog.logging.sinks import SinkConfig, StreamSink
from svclog.logging.structured_logger import LoggingContext


def json_context(level="silly", identity=None, **kwargs):
    """Context with a single in-memory JSON sink"""
    output = StringIO()
    sink = StreamSink(SinkConfig(name="memory", level=level), JsonFormatter(), stream=output)
    context = LoggingContext(identity=identity or ServiceIdentity("orders", "3.0.0", "test"), sinks=[sink], **kwargs)
    return context, output


def entries(output):
    return [json.loads(line) for line in output.getvalue().splitlines()]


def read_entries(path):
    with open(path, encoding="utf-8") as f:
        return [json.loads(line) for line in f if line.strip()]

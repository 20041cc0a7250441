import time

import click

from svclog.cli import pass_environment, CONTEXT_SETTINGS, Environment
from svclog.logging.domain import APILogger, BusinessLogger, DatabaseLogger, PerformanceLogger, SecurityLogger
from svclog.logging.helpers import log_health_check, log_structured_error


class DemoError(Exception):
    def __init__(self, message: str, code: str, status_code: int):
        super().__init__(message)
        self.code = code
        self.status_code = status_code


@click.command(context_settings=CONTEXT_SETTINGS)
@click.pass_context
@pass_environment
def cli(environment: Environment, context: click.Context):
    """Exercise every domain logger once"""
    logging_context = environment.setup_logging()
    root = logging_context.logger()

    root.info("Application started successfully")
    root.child("authentication").info("User authentication attempt", userId="user123")

    db = DatabaseLogger(root)
    db.log_connection("connect", host="db.internal", pool="primary")
    db.log_query("SELECT *\n  FROM users\n WHERE id = ?", ["user123"], execution_time=12)

    api = APILogger("payments-gateway", root)
    api.log_request(
        "POST", "/v1/charges", headers={"authorization": "Bearer abc", "accept": "application/json"},
        body={"amount": 1200, "token": "tok_visa"},
    )
    api.log_response(201, {"id": "ch_1", "status": "captured"}, duration=84)

    security = SecurityLogger(root)
    security.log_auth_attempt("user123", False, "10.0.0.7", "curl/8.4")
    security.log_permission_denied("user123", "/admin", "read", "10.0.0.7")

    business = BusinessLogger("orders", root)
    business.log_workflow("checkout", "payment", "completed", orderId="ord-42")
    business.log_metric("order_value", 1200, unit="cents", currency="EUR")

    perf = PerformanceLogger(root)
    perf.start_timer("demo")
    time.sleep(0.01)
    perf.end_timer("demo", items=3)
    perf.log_memory_usage()
    perf.log_cpu_usage()

    try:
        raise DemoError("Card declined", "card_declined", 402)
    except DemoError as e:
        log_structured_error(e, root, route="/v1/charges")

    log_health_check("cache", "healthy", root, latencyMs=3)
    logging_context.close()
    environment.log("Demo records written.")

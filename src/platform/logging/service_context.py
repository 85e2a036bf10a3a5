"""
Service context for log lines.

Identifies which process wrote a line when several API workers share one
log sink.
"""

from functools import lru_cache
import os


@lru_cache(maxsize=1)
def get_service_context() -> str:
    service_name = os.getenv('SERVICE_NAME', 'ticketing-payments')
    deploy_env = os.getenv('DEPLOY_ENV', 'local_dev')

    # Container hostnames are short random ids; fall back to PID locally
    instance_id = os.getenv('HOSTNAME', '')[:12] or str(os.getpid())

    return f'{service_name}@{deploy_env}:{instance_id}'

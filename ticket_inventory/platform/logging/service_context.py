"""
Service context extraction for distributed logging.

Identifies the emitting process as `service@environment:instance` so that
lines from the HTTP workers, the MQ consumer thread and the sweeper can be
told apart once they are aggregated.
"""

from functools import lru_cache
import os
import socket


@lru_cache(maxsize=1)
def get_service_context() -> str:
    service_name = os.getenv('SERVICE_NAME', 'ticket-inventory-service')
    deploy_env = os.getenv('DEPLOY_ENV', 'local_dev')

    # Inside a container the hostname is the pod / container id
    instance = os.getenv('HOSTNAME') or socket.gethostname()
    if deploy_env == 'local_dev' or not instance:
        instance = str(os.getpid())

    return f'{service_name}@{deploy_env}:{instance[:12]}'

import logging

import boto3
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectTimeoutError,
    EndpointConnectionError,
    NoCredentialsError,
    PartialCredentialsError,
    ReadTimeoutError,
)

from .exceptions import ExternalCallError

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (ConnectTimeoutError, ReadTimeoutError, EndpointConnectionError)


class AWSSessions:
    def __init__(self, config):
        # This is put here due to https://github.com/boto/botocore/issues/1841
        boto3.set_stream_logger(name="botocore.credentials", level=logging.ERROR)

        self.config = config
        self.session = None
        self.clients = {}

    def get_session(self):
        if self.session is None:
            self.session = self.create_session(
                profile_name=self.config.profile, region_name=self.config.region
            )
        return self.session

    def create_session(self, profile_name=None, region_name=None):
        kwargs = {}
        if profile_name is not None:
            kwargs["profile_name"] = profile_name
        if region_name is not None:
            kwargs["region_name"] = region_name
        try:
            return boto3.Session(**kwargs)
        except (NoCredentialsError, PartialCredentialsError, BotoCoreError) as e:
            raise ExternalCallError(
                f"Failed to create AWS session with profile '{profile_name}': {e}"
            )

    def client(self, service_name):
        if service_name not in self.clients:
            botocore_config = Config(
                connect_timeout=self.config.connect_timeout,
                read_timeout=self.config.read_timeout,
                retries={"total_max_attempts": 1},
            )
            try:
                self.clients[service_name] = self.get_session().client(
                    service_name, config=botocore_config
                )
            except BotoCoreError as e:
                raise ExternalCallError(f"Failed to create {service_name} client: {e}")
        return self.clients[service_name]


def _operation_name(operation):
    return getattr(operation, "__name__", repr(operation))


def list_call(operation, **kwargs):
    """Run a listing call once. Listing calls are never retried."""
    try:
        return operation(**kwargs)
    except (ClientError, BotoCoreError) as e:
        raise ExternalCallError(f"{_operation_name(operation)} failed: {e}")


def describe_call(operation, **kwargs):
    """Run a single describe call, retrying once if it timed out."""
    try:
        return operation(**kwargs)
    except TRANSIENT_ERRORS as e:
        logger.debug(f"{_operation_name(operation)} timed out ({e}), retrying once")
    except (ClientError, BotoCoreError) as e:
        raise ExternalCallError(f"{_operation_name(operation)} failed: {e}")

    try:
        return operation(**kwargs)
    except (ClientError, BotoCoreError) as e:
        raise ExternalCallError(f"{_operation_name(operation)} failed: {e}")


def list_all(client, operation_name, result_key, **kwargs):
    """Collect every item of a paginated listing into one list."""
    items = []
    try:
        for page in client.get_paginator(operation_name).paginate(**kwargs):
            items.extend(page.get(result_key, []))
    except (ClientError, BotoCoreError) as e:
        raise ExternalCallError(f"{operation_name} failed: {e}")
    return items

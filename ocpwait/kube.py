# SPDX-License-Identifier: Apache-2.0

"""Read access to the cluster API used as the fetch capability of a poll."""

from functools import lru_cache
from typing import Any, Dict, Optional

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.config import ConfigException
from kubernetes.dynamic import DynamicClient
from kubernetes.dynamic.exceptions import ResourceNotFoundError
from loguru import logger
import urllib3

from ocpwait import settings
from ocpwait.exceptions import FetchError, TransientFetchError
from ocpwait.poller import ResourceReference

# Not found is retried, the object may not have been created yet
TRANSIENT_HTTP_STATUS = [404, 408, 429]


def is_transient_status(status) -> bool:
    if status is None:
        return True
    return status in TRANSIENT_HTTP_STATUS or status >= 500


def classify_exception(ref: ResourceReference, exc: Exception) -> FetchError:
    """Map an exception raised while reading ``ref`` to a FetchError."""
    if isinstance(exc, FetchError):
        return exc

    if isinstance(exc, ApiException):
        message = f"API server returned {exc.status} {exc.reason} for {ref}"
        if is_transient_status(exc.status):
            return TransientFetchError(message, status=exc.status)
        return FetchError(message, status=exc.status)

    if isinstance(exc, ResourceNotFoundError):
        return FetchError(
            f"Kind {ref.kind} is not served by {ref.api_version}: {exc}"
        )

    if isinstance(exc, (urllib3.exceptions.HTTPError, ConnectionError, TimeoutError)):
        return TransientFetchError(f"Connection to the API server failed: {exc}")

    return FetchError(f"Reading {ref} failed: {exc}")


def _configuration_from_token(url, token, verify_ssl):
    configuration = client.Configuration()
    configuration.host = url
    configuration.api_key = {"authorization": f"Bearer {token}"}
    configuration.verify_ssl = verify_ssl
    if not verify_ssl:
        urllib3.disable_warnings()
    return configuration


@lru_cache
def get_api_client(
    kubeconfig: Optional[str] = None, context: Optional[str] = None
) -> client.ApiClient:
    """Create an API client.

    Order of preference: API URL and token from the settings, the given
    kubeconfig file, the in-cluster service account, the default
    kubeconfig in the home directory.
    """
    if settings.KUBE_API_URL and settings.KUBE_API_TOKEN:
        logger.debug(f"Using API server {settings.KUBE_API_URL} with token")
        return client.ApiClient(
            _configuration_from_token(
                settings.KUBE_API_URL,
                settings.KUBE_API_TOKEN,
                settings.KUBE_VERIFY_SSL,
            )
        )

    if kubeconfig:
        logger.debug(f"Using kubeconfig {kubeconfig}")
        return config.new_client_from_config(config_file=kubeconfig, context=context)

    try:
        config.load_incluster_config()
        logger.debug("Using in-cluster configuration")
        return client.ApiClient()
    except ConfigException:
        logger.debug("Not running inside a cluster, using the default kubeconfig")
        return config.new_client_from_config(context=context)


class KubeFetcher:
    """Reads resources through the dynamic client.

    Instances are callables and can be passed as ``fetch`` to
    ``ocpwait.poller.poll``. API discovery happens on the first read so
    that an unreachable API server shows up as a fetch error.
    """

    def __init__(self, api_client, request_timeout=None):
        self.api_client = api_client
        self.request_timeout = request_timeout or settings.KUBE_REQUEST_TIMEOUT
        self._dynamic = None

    @property
    def dynamic(self) -> DynamicClient:
        if self._dynamic is None:
            self._dynamic = DynamicClient(self.api_client)
        return self._dynamic

    def read(self, ref: ResourceReference) -> Dict[str, Any]:
        resource = self.dynamic.resources.get(api_version=ref.api_version, kind=ref.kind)
        kwargs = {"name": ref.name, "_request_timeout": self.request_timeout}
        if ref.namespace:
            kwargs["namespace"] = ref.namespace
        return resource.get(**kwargs).to_dict()

    def __call__(self, ref: ResourceReference) -> Dict[str, Any]:
        try:
            return self.read(ref)
        except Exception as e:
            raise classify_exception(ref, e) from e

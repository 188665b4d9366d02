"""Transport clients used to send requests.

Requests go through the process-wide default client unless they carry a
proxy or an explicitly injected client. The default client is built once,
on first use, from the EASYHTTP_* environment variables; it is safe to
share between threads.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

import httpx

from easyhttp.config import ClientConfig
from easyhttp.error import ProxyConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CLIENT: Optional[httpx.Client] = None
_default_client_lock = threading.Lock()


def new_client(
    config: Optional[ClientConfig] = None, proxy: Optional[httpx.URL] = None
) -> httpx.Client:
    """Builds a transport client from the given configuration, optionally
    routed through a proxy."""
    if config is None:
        config = ClientConfig()
    return httpx.Client(
        headers={"User-Agent": config.user_agent.value},
        follow_redirects=config.redirects,
        proxy=proxy,
    )


def default_client() -> httpx.Client:
    """Returns the default client, initializing it if it has not been
    initialized yet."""
    global DEFAULT_CLIENT
    with _default_client_lock:
        if DEFAULT_CLIENT is None:
            config = ClientConfig()
            logger.debug("initializing default client with %r", config)
            DEFAULT_CLIENT = new_client(config)
        return DEFAULT_CLIENT


def set_default_client(client: Optional[httpx.Client]):
    """Replaces the default client. Passing None resets it so that the next
    call to default_client builds a new one; the previous client is not
    closed."""
    global DEFAULT_CLIENT
    with _default_client_lock:
        DEFAULT_CLIENT = client


def proxy_client(proxy: httpx.URL) -> httpx.Client:
    """Returns a new client routing every request through proxy. The caller
    owns the client and must close it.

    Raises:
        ProxyConfigurationError: if httpx cannot use the proxy, for example
            a SOCKS proxy without the socksio package installed.
    """
    logger.debug("initializing client for proxy %s://%s", proxy.scheme, proxy.host)
    try:
        return new_client(proxy=proxy)
    except (ImportError, ValueError) as e:
        raise ProxyConfigurationError(
            f"cannot route requests through {proxy.scheme} proxy: {e}"
        ) from e

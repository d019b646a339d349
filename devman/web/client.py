"""
HTTP session holder for device web APIs and web-root fingerprinting.

Certificate verification is disabled: device web servers use self-signed
certificates and are reached over trusted management networks only.
"""
import logging

import requests
import urllib3

logger = logging.getLogger(__name__)

urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)


class WebError(Exception):
    """HTTP request failed or returned a status above 299."""

    def __init__(self, message: str, status_code: int | None = None, body: bytes = b""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class WebClient:
    """Cookie-persistent requests session bound to one device."""

    def __init__(
        self,
        host: str,
        timeout: int = 15,
        headers: dict[str, str] | None = None,
        credentials: tuple[str, str] | None = None,
    ):
        self.host = host
        self.timeout = timeout
        self.credentials = credentials
        self.session = requests.Session()
        self.session.verify = False
        if headers:
            self.session.headers.update(headers)

    def url(self, params: str = "", scheme: str = "https") -> str:
        # IPv6 literals need brackets in URLs
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"{scheme}://{host}/{params.lstrip('/')}"

    def get(self, params: str = "", scheme: str = "https") -> bytes:
        """
        GET ``<scheme>://<host>/<params>`` and return the body.

        Raises:
            WebError: transport failure or status > 299 (body kept on the error)
        """
        url = self.url(params, scheme)
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise WebError(f"GET {url} failed: {e}") from e

        body = response.content
        if response.status_code > 299:
            raise WebError(
                f"GET {url} failed with status code: {response.status_code}",
                status_code=response.status_code,
                body=body,
            )
        logger.debug(f"GET {url}: {response.status_code}, {len(body)} bytes")
        return body

    def close(self) -> None:
        self.session.close()

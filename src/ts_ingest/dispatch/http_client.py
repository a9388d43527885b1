"""
HTTP client for the remote store's query and write endpoints.

Implements QueryClient and RowWriteClient on top of httpx:

    POST /query   form fields q, db
    POST /write   ?db=&rp=&precision=  body: line protocol text
"""

import logging
from typing import Any, Optional

import httpx

from ..config.settings import ImportSettings
from ..ingestion.exceptions import TransportError

logger = logging.getLogger(__name__)

SUCCESS_STATUS_CODES = (200, 204)


class HttpClient:
    """
    httpx-backed query and row-write client.

    Usage:
        with HttpClient.from_settings(settings) as client:
            client.query("CREATE DATABASE db")
            client.write("db", "autogen", "cpu v=1 1", "ns")
    """

    def __init__(
        self,
        base_url: str,
        username: str = "",
        password: str = "",
        database: str = "",
        timeout: float = 5.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        auth = httpx.BasicAuth(username, password) if username else None
        self.database = database
        self.timeout = timeout
        self._client = httpx.Client(
            base_url=base_url,
            auth=auth,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls,
        settings: ImportSettings,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> "HttpClient":
        return cls(
            base_url=settings.base_url,
            username=settings.username,
            password=settings.password,
            database=settings.database,
            timeout=settings.request_timeout_ms / 1000.0,
            transport=transport,
        )

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def query(self, command: str, timeout: Optional[float] = None) -> dict[str, Any]:
        """
        Run a query command.

        Args:
            command: Query text, e.g. "CREATE DATABASE db"
            timeout: Per-request timeout in seconds (client default if None)

        Returns:
            Decoded JSON response body ({} for an empty body)

        Raises:
            TransportError: On connection failure or a non-success status,
                or if the response reports a statement error
        """
        data = {"q": command}
        if self.database:
            data["db"] = self.database
        response = self._post("/query", data=data, timeout=timeout, what="query")
        if not response.content:
            return {}
        try:
            body = response.json()
        except ValueError as e:
            raise TransportError(
                "query response is not valid JSON",
                status_code=response.status_code,
                body=response.text,
            ) from e

        for result in body.get("results", []) if isinstance(body, dict) else []:
            if isinstance(result, dict) and result.get("error"):
                raise TransportError(f"query failed: {result['error']}")
        logger.debug(f"Query executed: {command}")
        return body

    def write(
        self,
        database: str,
        retention_policy: str,
        raw: str,
        precision: str,
        timeout: Optional[float] = None,
    ) -> None:
        """
        Write line protocol text.

        Raises:
            TransportError: On connection failure or a non-success status
        """
        params = {"db": database, "rp": retention_policy, "precision": precision}
        self._post(
            "/write",
            params=params,
            content=raw.encode("utf-8"),
            timeout=timeout,
            what="write",
        )
        logger.debug(f"Wrote {len(raw.splitlines())} lines to {database}.{retention_policy}")

    def _post(
        self,
        path: str,
        what: str,
        timeout: Optional[float] = None,
        **kwargs,
    ) -> httpx.Response:
        try:
            response = self._client.post(
                path,
                timeout=timeout if timeout is not None else self.timeout,
                **kwargs,
            )
        except httpx.HTTPError as e:
            raise TransportError(f"{what} request failed: {e}") from e

        if response.status_code not in SUCCESS_STATUS_CODES:
            raise TransportError(
                f"{what} request failed",
                status_code=response.status_code,
                body=response.text,
            )
        return response

"""HTTP batch fetcher built on httpx."""

from typing import Any, Dict, List, Optional

import httpx

from densitygraph.fetcher.base import BatchFetchError
from densitygraph.models.data_models import DataPoint, GridDescriptor


class HTTPBatchFetcher:
    """
    Batch fetcher backed by an HTTP batch server.

    Provides:
    - Configurable connect and read timeouts
    - Connection pooling via httpx
    - Context manager for proper lifecycle management

    Endpoints:
    - GET /grid            -> {"columns", "rows", "batch_count"}
    - GET /batches/{index} -> {"index", "points": [{"x", "y"}, ...]}, 204 when empty
    """

    def __init__(
        self,
        base_url: str,
        connect_timeout: float = 3.0,
        read_timeout: float = 8.0,
        client: Optional[httpx.Client] = None
    ):
        """
        Initialize HTTP fetcher.

        Args:
            base_url: Server base URL, e.g. http://localhost:8001
            connect_timeout: Connection timeout in seconds
            read_timeout: Read timeout in seconds
            client: Pre-built client to use instead of creating one
        """
        self.base_url = base_url.rstrip("/")
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout
        self._client = client
        self._owns_client = client is None

    def __enter__(self):
        """Enter context manager."""
        if self._client is None:
            timeout = httpx.Timeout(
                connect=self.connect_timeout,
                read=self.read_timeout,
                write=5.0,
                pool=5.0
            )
            self._client = httpx.Client(timeout=timeout)
            self._owns_client = True
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Exit context manager."""
        if self._client and self._owns_client:
            self._client.close()
            self._client = None

    def _get(self, path: str) -> httpx.Response:
        if not self._client:
            raise RuntimeError("Client not initialized. Use 'with' context manager.")

        try:
            response = self._client.get(f"{self.base_url}{path}")
        except httpx.HTTPError as e:
            raise BatchFetchError(f"{path}: {type(e).__name__}: {e}") from e

        if response.status_code >= 400:
            raise BatchFetchError(f"{path}: HTTP {response.status_code}")
        return response

    def get_grid_descriptor(self) -> GridDescriptor:
        """
        Fetch the grid descriptor.

        Raises:
            BatchFetchError: If the server is unreachable or answers with an error
        """
        data = self._get("/grid").json()
        return GridDescriptor(
            columns=int(data["columns"]),
            rows=int(data["rows"]),
            batch_count=int(data["batch_count"]),
        )

    def get_batch(self, index: int) -> Optional[List[DataPoint]]:
        """
        Fetch one batch of data points.

        Returns:
            Data points, or None when the server reports no content

        Raises:
            BatchFetchError: On transport errors, error statuses or malformed bodies
        """
        response = self._get(f"/batches/{index}")
        if response.status_code == 204:
            return None

        try:
            payload: Dict[str, Any] = response.json()
            return [DataPoint(x=int(p["x"]), y=int(p["y"])) for p in payload.get("points", [])]
        except (ValueError, KeyError, TypeError) as e:
            raise BatchFetchError(f"/batches/{index}: malformed body: {e}") from e

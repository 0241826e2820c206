"""API client for the remote drive."""

from __future__ import annotations

import mimetypes
import random
import time
from typing import IO, Any, Iterator

import httpx

from .config import config
from .exceptions import (
    DriveAPIError,
    DriveAuthenticationError,
    DriveConfigError,
    DriveDownloadError,
    DriveInvalidResponseError,
    DriveNetworkError,
    DriveNotFoundError,
    DrivePermissionError,
    DriveRateLimitError,
    DriveUploadError,
)
from .utils import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_PER_PAGE,
    DEFAULT_RETRY_DELAY,
    DEFAULT_TIMEOUT,
    TRANSFER_CHUNK_SIZE,
)


class DriveClient:
    """Client for the remote drive REST API."""

    def __init__(
        self,
        api_key: str | None = None,
        api_url: str | None = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        timeout: float = DEFAULT_TIMEOUT,
        workspace_id: int = 0,
    ):
        """Initialize the API client.

        Args:
            api_key: Optional API key (uses config if not provided)
            api_url: Optional API URL (uses config if not provided)
            max_retries: Maximum number of retry attempts (default: 3)
            retry_delay: Initial delay between retries in seconds (default: 1.0)
            timeout: Request timeout in seconds (default: 30.0)
            workspace_id: Workspace to operate in (default: 0 for personal)
        """
        self.api_key = api_key or config.api_key
        self.api_url = (api_url or config.api_url).rstrip("/")
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.timeout = timeout
        self.workspace_id = workspace_id

        if not self.api_key:
            raise DriveConfigError(
                "API key not configured. Run 'drivesync init' or set the "
                "DRIVESYNC_API_KEY environment variable."
            )

        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create the httpx client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
            )
        return self._client

    def close(self) -> None:
        """Close the client and release connections."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()
            self._client = None

    def _url(self, endpoint: str) -> str:
        return f"{self.api_url}/{endpoint.lstrip('/')}"

    def _should_retry(self, exception: Exception, attempt: int) -> bool:
        """Determine if a request should be retried.

        Args:
            exception: The exception that occurred
            attempt: Current attempt number (0-based)

        Returns:
            True if the request should be retried, False otherwise
        """
        if attempt >= self.max_retries:
            return False

        # Transient failures
        if isinstance(exception, (DriveNetworkError, DriveRateLimitError)):
            return True

        if isinstance(exception, httpx.HTTPStatusError):
            return 500 <= exception.response.status_code < 600

        return False

    def _calculate_retry_delay(self, attempt: int) -> float:
        """Calculate delay before next retry using exponential backoff.

        Args:
            attempt: Current attempt number (0-based)

        Returns:
            Delay in seconds
        """
        base_delay = self.retry_delay * (2**attempt)
        # +/- 25% jitter
        jitter = base_delay * 0.25 * (2 * random.random() - 1)
        return base_delay + jitter

    def _handle_http_error(
        self, e: httpx.HTTPStatusError, attempt: int
    ) -> tuple[Exception, bool]:
        """Map an HTTP error to a drive exception and decide on a retry.

        Args:
            e: The HTTP error exception
            attempt: Current attempt number

        Returns:
            Tuple of (exception to raise, should_retry)

        Raises:
            DriveAuthenticationError: On HTTP 401
            DrivePermissionError: On HTTP 403
            DriveNotFoundError: On HTTP 404
        """
        status_code = e.response.status_code

        if status_code == 401:
            raise DriveAuthenticationError(
                "Invalid API key or unauthorized access"
            ) from e
        elif status_code == 403:
            raise DrivePermissionError("Access forbidden - check your permissions") from e
        elif status_code == 404:
            raise DriveNotFoundError("Resource not found") from e
        elif status_code == 429:
            error = DriveRateLimitError("Rate limit exceeded - please try again later")
            return (error, attempt < self.max_retries)

        error_msg = f"API request failed with status {status_code}"
        try:
            if e.response.content:
                error_data = e.response.json()
                if isinstance(error_data, dict):
                    msg = (
                        error_data.get("message")
                        or error_data.get("error")
                        or error_data.get("detail")
                    )
                    if msg:
                        error_msg = f"{error_msg}: {msg}"
        except ValueError:
            # Body is not JSON; keep the status-based message
            pass

        should_retry = 500 <= status_code < 600 and attempt < self.max_retries
        return (DriveAPIError(error_msg), should_retry)

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        """Make an API request with retry logic.

        Args:
            method: HTTP method
            endpoint: API endpoint path
            **kwargs: Additional arguments passed to httpx

        Returns:
            Response JSON data ({} for empty responses)

        Raises:
            DriveAPIError: If the request fails after all retries
        """
        url = self._url(endpoint)
        last_exception: Exception | None = None
        client = self._get_client()

        for attempt in range(self.max_retries + 1):
            try:
                response = client.request(method, url, **kwargs)
                response.raise_for_status()

                content_type = response.headers.get("Content-Type", "")
                if response.content and "application/json" not in content_type:
                    # An HTML page instead of JSON usually means a login redirect
                    if "text/html" in content_type:
                        raise DriveAuthenticationError(
                            "Invalid API key - server returned HTML instead of JSON"
                        )
                    raise DriveInvalidResponseError(
                        f"Unexpected response type: {content_type}"
                    )

                if response.content:
                    try:
                        return response.json()
                    except ValueError as e:
                        raise DriveInvalidResponseError(
                            "Invalid JSON response from server"
                        ) from e
                return {}

            except httpx.HTTPStatusError as e:
                error, should_retry = self._handle_http_error(e, attempt)
                last_exception = error

                if should_retry:
                    delay = self._calculate_retry_delay(attempt)
                    if isinstance(error, DriveRateLimitError):
                        retry_after = e.response.headers.get("Retry-After")
                        if retry_after and retry_after.isdigit():
                            delay = float(retry_after)
                    time.sleep(delay)
                    continue
                raise error from e
            except DriveAPIError:
                raise
            except httpx.RequestError as e:
                error = DriveNetworkError(f"Network error: {e}")
                last_exception = error
                if self._should_retry(error, attempt):
                    time.sleep(self._calculate_retry_delay(attempt))
                    continue
                raise error from e

        if last_exception:
            raise last_exception
        raise DriveAPIError("Request failed after all retry attempts")

    # =========================
    # File Entry Operations
    # =========================

    def get_file_entries(
        self,
        parent_ids: list[int] | None = None,
        per_page: int = DEFAULT_PER_PAGE,
        page: int | None = None,
    ) -> Any:
        """Get one page of file entries.

        Args:
            parent_ids: Only entries that are children of these folders
                (None lists the root folder)
            per_page: How many entries to return per page
            page: Page number to retrieve (1-based, default: first page)

        Returns:
            Paginated response with a "data" list of entries
        """
        params: dict[str, Any] = {
            "perPage": per_page,
            "workspaceId": self.workspace_id,
        }
        if page is not None:
            params["page"] = page
        if parent_ids:
            params["parentIds"] = ",".join(map(str, parent_ids))

        return self._request("GET", "/drive/file-entries", params=params)

    def update_file_entry(
        self,
        entry_id: int,
        name: str | None = None,
        updated_at: str | None = None,
    ) -> Any:
        """Update an existing file entry.

        Args:
            entry_id: ID of the entry to update
            name: New name for the entry
            updated_at: New ISO modification timestamp

        Returns:
            Response with 'status' and 'fileEntry' keys
        """
        data: dict[str, Any] = {}
        if name:
            data["name"] = name
        if updated_at:
            data["updated_at"] = updated_at

        return self._request("PUT", f"/file-entries/{entry_id}", json=data)

    def delete_file_entries(
        self,
        entry_ids: list[int],
        delete_forever: bool = False,
    ) -> Any:
        """Move entries to trash or delete them permanently.

        Args:
            entry_ids: List of entry IDs to delete
            delete_forever: Whether entries should be deleted permanently

        Returns:
            Response with 'status' key
        """
        data = {"entryIds": entry_ids, "deleteForever": delete_forever}
        params = {"workspaceId": self.workspace_id}
        return self._request("POST", "/file-entries/delete", json=data, params=params)

    def create_folder(self, name: str, parent_id: int | None = None) -> Any:
        """Create a new folder.

        Args:
            name: Name of the new folder
            parent_id: ID of parent folder (None for root)

        Returns:
            Response with 'status' and 'folder' keys
        """
        data: dict[str, Any] = {"name": name, "workspaceId": self.workspace_id}
        if parent_id is not None:
            data["parentId"] = parent_id

        return self._request("POST", "/folders", json=data)

    # =========================
    # Transfers
    # =========================

    def upload_stream(
        self,
        fileobj: IO[bytes],
        name: str,
        size: int,
        parent_id: int | None = None,
    ) -> Any:
        """Upload the content of a binary stream as a new file entry.

        Uses the presigned URL flow:
        1. Get a presigned URL from the API
        2. PUT the content straight to storage
        3. Create the file entry in the drive database

        Args:
            fileobj: Readable binary stream positioned at the start of the data
            name: Name of the new entry
            size: Number of bytes that will be read from fileobj
            parent_id: ID of the destination folder (None for root)

        Returns:
            Response with 'status' and 'fileEntry' keys

        Raises:
            DriveUploadError: If the storage upload fails
        """
        mime_type = mimetypes.guess_type(name)[0] or "application/octet-stream"
        extension = name.rsplit(".", 1)[1] if "." in name.lstrip(".") else ""

        presign_payload: dict[str, Any] = {
            "filename": name,
            "mime": mime_type,
            "size": size,
            "extension": extension,
            "workspaceId": self.workspace_id,
            "parentId": parent_id,
        }
        presign_response = self._request(
            "POST",
            "/s3/simple/presign",
            json=presign_payload,
            params={"workspaceId": self.workspace_id},
        )

        presigned_url = presign_response.get("url")
        key = presign_response.get("key")
        if not presigned_url or not key:
            raise DriveUploadError(f"Invalid presign response: {presign_response}")

        def reader() -> Iterator[bytes]:
            while True:
                chunk = fileobj.read(TRANSFER_CHUNK_SIZE)
                if not chunk:
                    break
                yield chunk

        try:
            # Storage upload does not go through the API base URL
            storage_response = httpx.put(
                presigned_url,
                content=reader(),
                headers={
                    "Content-Type": mime_type,
                    "Content-Length": str(size),
                    "x-amz-acl": "private",
                },
                timeout=max(self.timeout, 60.0),
            )
            storage_response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise DriveUploadError(f"Storage upload failed: {e}") from e
        except httpx.RequestError as e:
            raise DriveUploadError(f"Network error during storage upload: {e}") from e

        entry_payload: dict[str, Any] = {
            "clientMime": mime_type,
            "clientName": name,
            "filename": key.split("/")[-1],
            "size": size,
            "clientExtension": extension,
            "workspaceId": self.workspace_id,
            "parentId": parent_id,
        }
        return self._request("POST", "/s3/entries", json=entry_payload)

    def download_to(self, hash_value: str, fileobj: IO[bytes]) -> int:
        """Stream a file's content into a writable binary stream.

        Args:
            hash_value: Hash of the file to download
            fileobj: Writable binary stream

        Returns:
            Number of bytes written

        Raises:
            DriveNotFoundError: If the file does not exist
            DriveDownloadError: If the download fails
            DriveNetworkError: On connection problems
        """
        url = self._url(f"/file-entries/download/{hash_value}")
        client = self._get_client()
        written = 0

        try:
            with client.stream("GET", url) as response:
                response.raise_for_status()
                for chunk in response.iter_bytes(chunk_size=TRANSFER_CHUNK_SIZE):
                    if chunk:
                        fileobj.write(chunk)
                        written += len(chunk)
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                raise DriveNotFoundError(f"File not found: {hash_value}") from e
            raise DriveDownloadError(f"Download failed: {e}") from e
        except httpx.RequestError as e:
            raise DriveNetworkError(f"Network error during download: {e}") from e

        return written

    # =========================
    # Account
    # =========================

    def get_logged_user(self) -> Any:
        """Get the user the API key belongs to."""
        return self._request("GET", "/cli/loggedUser")

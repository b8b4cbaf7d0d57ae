import logging
import threading
from typing import Any
from urllib.parse import quote

import requests

from ..config import Config
from ..validators import validate_content, validate_remote_path

logger = logging.getLogger(__name__)

RAW_CONTENT_URL = "https://raw.githubusercontent.com"
DEFAULT_RAW_BRANCH = "main"


class RemoteError(Exception):
    """A request to the GitHub API failed.

    ``str(error)`` is the message GitHub returned, unchanged.
    """

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class RemoteConflictError(RemoteError):
    """The version token sent with a write no longer matches the remote file."""


class GitHubClient:
    """Thin client over the repository contents API.

    Every operation is keyed by a repository-relative path; the owner and
    repository come from ``config``.
    """

    def __init__(self, config: Config):
        self.config = config
        self._thread_local = threading.local()
        self.repo_url = self._get_repo_url()

    @property
    def session(self) -> requests.Session:
        """Return the session bound to the current thread."""
        return self._get_session()

    def _get_repo_url(self) -> str:
        return (
            f"{self.config.api_url.rstrip('/')}/repos/"
            f"{quote(self.config.owner, safe='')}/"
            f"{quote(self.config.repo, safe='')}"
        )

    def _get_session(self) -> requests.Session:
        """Get or create a thread-local requests.Session."""
        if not hasattr(self._thread_local, "session"):
            self._thread_local.session = self._create_session()
        return self._thread_local.session

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update(
            {
                "Authorization": f"Bearer {self.config.token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            }
        )
        return session

    def _contents_url(self, path: str) -> str:
        valid, reason = validate_remote_path(path)
        if not valid:
            raise ValueError(reason)
        return f"{self.repo_url}/contents/{quote(path, safe='/')}"

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        """
        Send a request and turn transport or HTTP failures into RemoteError.
        """
        session = self._get_session()
        try:
            response = session.request(
                method, url, timeout=(10, 60), **kwargs
            )
        except requests.RequestException as e:
            raise RemoteError(str(e)) from e

        if response.status_code >= 400:
            message = self._error_message(response)
            if response.status_code == 409:
                raise RemoteConflictError(message, response.status_code)
            raise RemoteError(message, response.status_code)
        return response

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return f"HTTP {response.status_code}: {response.reason or 'error'}"

    def validate_connection(self) -> str:
        """
        Check that the token can see the repository.
        Returns the repository's full name if successful.
        """
        response = self._request("GET", self.repo_url)
        data = response.json()
        return str(data.get("full_name", ""))

    def get_existing(self, path: str) -> str | None:
        """
        Return the version token (blob SHA) of the file at ``path``.

        Returns None when nothing exists there or the path is a directory.
        Any other failure is raised.
        """
        params = {"ref": self.config.branch} if self.config.branch else None
        try:
            response = self._request(
                "GET", self._contents_url(path), params=params
            )
        except RemoteError as e:
            if e.status == 404:
                return None
            raise

        data = response.json()
        if isinstance(data, list):
            logger.debug("%s is a directory on the remote", path)
            return None
        return data.get("sha")

    def create_or_update(
        self,
        path: str,
        content_base64: str,
        message: str,
        sha: str | None = None,
    ) -> dict[str, Any]:
        """
        Create the file at ``path``, or update it when ``sha`` is given.

        Args:
            path: Repository-relative path
            content_base64: File content, base64 encoded
            message: Commit message
            sha: Current version token of the file, if it exists

        Returns:
            The API response (``content`` and ``commit`` objects)

        Raises:
            ValueError: If the path or content is invalid
            RemoteConflictError: If ``sha`` is stale
            RemoteError: For any other failure
        """
        valid, reason = validate_content(content_base64)
        if not valid:
            raise ValueError(reason)

        payload: dict[str, Any] = {
            "message": message,
            "content": content_base64,
        }
        if sha:
            payload["sha"] = sha
        if self.config.branch:
            payload["branch"] = self.config.branch

        response = self._request(
            "PUT", self._contents_url(path), json=payload
        )
        return response.json()

    def delete(self, path: str, sha: str, message: str) -> dict[str, Any]:
        """
        Delete the file at ``path``. ``sha`` must be its current version token.
        """
        payload: dict[str, Any] = {"message": message, "sha": sha}
        if self.config.branch:
            payload["branch"] = self.config.branch

        response = self._request(
            "DELETE", self._contents_url(path), json=payload
        )
        return response.json()

    def raw_url(self, path: str) -> str:
        """
        Public raw-content URL for a file in the repository.
        """
        branch = self.config.branch or DEFAULT_RAW_BRANCH
        return (
            f"{RAW_CONTENT_URL}/{self.config.owner}/{self.config.repo}/"
            f"{branch}/{quote(path, safe='/')}"
        )

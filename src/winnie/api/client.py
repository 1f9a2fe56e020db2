"""Winnie Cloud API client built on httpx."""

import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import httpx

from winnie import __version__
from . import APIError, NotFoundError, TransportFailure, error_for_status


logger = logging.getLogger(__name__)


class Client:
    """Synchronous client for the Winnie Cloud HTTP API.

    Every call blocks until a response arrives. Non-2xx responses are
    raised as the typed ``APIError`` subclasses; network failures are
    raised as ``TransportFailure``. Callers never look at raw status
    codes.
    """

    def __init__(
        self,
        api_url: str,
        token: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """Initialize the API client.

        Args:
            api_url: Base URL of the API, e.g. https://api.winniecloud.com/apiv2
            token: API token obtained at login, if any
            timeout: Per-request timeout in seconds
            transport: Custom httpx transport (used by tests)
        """
        self.api_url = api_url.rstrip("/")
        self.token = token
        self._http = httpx.Client(
            base_url=self.api_url,
            timeout=httpx.Timeout(timeout),
            headers={
                "Accept": "application/json",
                "User-Agent": f"winnie-cli/{__version__}",
            },
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def _headers(self) -> Dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Token {self.token}"}

    def call(self, method: str, path: str, body: Optional[Dict[str, Any]] = None,
             params: Optional[Dict[str, Any]] = None) -> Any:
        """Perform one API call and return the decoded JSON body.

        Raises:
            APIError: Typed subclass for non-2xx responses
            TransportFailure: If the API could not be reached
        """
        logger.debug("%s %s", method, path)
        try:
            response = self._http.request(method, path, json=body, params=params, headers=self._headers())
        except httpx.TransportError as e:
            logger.debug("%s %s failed: %s", method, path, e)
            raise TransportFailure({"message": f"Could not connect to {self.api_url}: {e}"})

        logger.debug("%s %s -> %s", method, path, response.status_code)
        payload = self._decode(response)

        if response.is_success:
            return payload
        raise error_for_status(response.status_code, payload if isinstance(payload, dict) else None)

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            if response.is_success:
                raise APIError({"message": "Invalid JSON in API response"}, status_code=response.status_code)
            return {"message": response.text}

    # Account

    def register(self, email: str, password: str, ssh_key: Optional[str] = None) -> Dict[str, Any]:
        return self.call("POST", "/users", {"user": {"email": email, "password": password, "ssh_key": ssh_key}})

    def authorize(self, email: str, password: str) -> str:
        """Exchange email and password for an API token."""
        response = self.call("POST", "/tokens", {"email": email, "password": password})
        self.token = response["token"]
        return self.token

    def logout(self) -> None:
        self.call("DELETE", "/tokens")
        self.token = None

    def add_ssh_key(self, ssh_key: str) -> Dict[str, Any]:
        return self.call("POST", "/ssh_keys", {"ssh_key": ssh_key})

    def ssh_key_uploaded(self, fingerprint: str) -> bool:
        try:
            self.call("GET", f"/ssh_keys/{fingerprint}")
        except NotFoundError:
            return False
        return True

    def delete_ssh_key(self, fingerprint: str) -> None:
        self.call("DELETE", f"/ssh_keys/{fingerprint}")

    # Clouds

    def apps(self) -> List[Dict[str, Any]]:
        return self.call("GET", "/apps")

    def app(self, code_name: str) -> Dict[str, Any]:
        return self.call("GET", f"/apps/{code_name}")

    def create_app(self, attributes: Dict[str, Any]) -> Dict[str, Any]:
        return self.call("POST", "/apps", {"app": attributes})

    def delete_app(self, code_name: str) -> None:
        self.call("DELETE", f"/apps/{code_name}")

    def start_cloud(self, code_name: str) -> Dict[str, Any]:
        return self.call("PUT", f"/apps/{code_name}/start")

    def stop_cloud(self, code_name: str) -> Dict[str, Any]:
        return self.call("PUT", f"/apps/{code_name}/stop")

    def redeploy(self, code_name: str) -> Dict[str, Any]:
        return self.call("POST", f"/apps/{code_name}/deploys")

    def deployment(self, code_name: str, deployment_id: str) -> Dict[str, Any]:
        return self.call("GET", f"/apps/{code_name}/deploys/{deployment_id}")

    def deploy_logs(self, code_name: str) -> List[Dict[str, Any]]:
        return self.call("GET", f"/apps/{code_name}/deployment_logs")

    def deploy_log(self, code_name: str, log_id: str) -> Dict[str, Any]:
        return self.call("GET", f"/apps/{code_name}/deployment_logs/{log_id}")

    def statistics(self, code_name: str) -> List[Dict[str, Any]]:
        return self.call("GET", f"/apps/{code_name}/statistics")

    def tunnel(self, code_name: str, kind: str, server: Optional[str] = None) -> Dict[str, Any]:
        return self.call("GET", f"/apps/{code_name}/tunnel", params=_compact({"type": kind, "server": server}))

    def configured_db_server(self, code_name: str, kind: str, server: Optional[str] = None) -> Dict[str, Any]:
        return self.call("GET", f"/apps/{code_name}/configured_db_server",
                         params=_compact({"type": kind, "server": server}))

    # Backups

    def database_backups(self, code_name: str) -> List[Dict[str, Any]]:
        return self.call("GET", f"/apps/{code_name}/database_backups")

    def request_backup(self, code_name: str, kind: Optional[str] = None) -> Dict[str, Any]:
        return self.call("POST", f"/apps/{code_name}/database_backups", _compact({"kind": kind}))

    def download_backup_url(self, code_name: str, filename: str) -> str:
        """Short-lived URL the backup file can be fetched from."""
        return self.call("GET", f"/apps/{code_name}/database_backups/{filename}/download_url")["url"]

    def download_file(
        self,
        url: str,
        destination: Path,
        on_progress: Optional[Callable[[int, Optional[int]], None]] = None,
    ) -> int:
        """Stream ``url`` into ``destination`` without sending the API token.

        The body is written to ``<destination>.part`` and renamed once
        complete; the partial file is removed when the download fails.

        Returns:
            Number of bytes written

        Raises:
            APIError: Typed subclass for non-2xx responses
            TransportFailure: If the download host could not be reached
            OSError: If the file could not be written
        """
        temp_path = destination.with_name(destination.name + ".part")
        written = 0
        logger.debug("Downloading %s to %s", url, destination)
        try:
            with self._http.stream("GET", url) as response:
                if not response.is_success:
                    response.read()
                    payload = self._decode(response)
                    raise error_for_status(response.status_code, payload if isinstance(payload, dict) else None)
                length = response.headers.get("Content-Length")
                total = int(length) if length and length.isdigit() else None
                with open(temp_path, "wb") as f:
                    for chunk in response.iter_bytes():
                        f.write(chunk)
                        written += len(chunk)
                        if on_progress:
                            on_progress(written, total)
            temp_path.replace(destination)
        except httpx.TransportError as e:
            raise TransportFailure({"message": f"Could not download {url}: {e}"})
        finally:
            if temp_path.exists():
                temp_path.unlink()
        return written

    # Organizations

    def organizations(self) -> List[Dict[str, Any]]:
        return self.call("GET", "/organizations")

    def create_organization(self, name: str, redeem_code: Optional[str] = None,
                            referral_code: Optional[str] = None) -> Dict[str, Any]:
        body = {"organization": {"name": name, "redeem_code": redeem_code}}
        if referral_code:
            body["referral_code"] = referral_code
        return self.call("POST", "/organizations", body)

    def members(self, organization_name: str) -> List[Dict[str, Any]]:
        return self.call("GET", f"/organizations/{organization_name}/memberships")

    def send_invitation(self, organization_name: str, email: str, owner: bool = False) -> Dict[str, Any]:
        return self.call("POST", f"/organizations/{organization_name}/memberships",
                         {"email": email, "owner": owner})


def _compact(values: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}

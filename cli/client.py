from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the dashboard service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def get_dashboard(self) -> Dict[str, Any]:
        return self._request("GET", "/dashboard")

    def get_forecast(self) -> Dict[str, Any]:
        return self._request("GET", "/forecast")

    def get_history(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/history")

    def sign_in(self, email: str, password: str) -> Dict[str, Any]:
        return self._request("POST", "/auth/signin", json={"email": email, "password": password})

    def toggle_auto(self) -> Dict[str, Any]:
        return self._request("POST", "/control/auto")

    def toggle_manual(self) -> Dict[str, Any]:
        return self._request("POST", "/control/manual")

    def send_reading(
        self,
        temperature: Optional[float],
        humidity: Optional[float],
        soil: Optional[float],
        pump_status: Optional[str],
    ) -> Dict[str, Any]:
        payload = {
            "temperature": temperature,
            "humidity": humidity,
            "soil": soil,
            "pumpStatus": pump_status,
        }
        return self._request("POST", "/device/readings", json=payload)

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.TransportError as exc:
            typer.secho(
                f"Could not reach {self._config.base_url}: {exc}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(code=1) from exc
        return response.json()

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except (ValueError, AttributeError):
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

import logging
from typing import Any, Dict, Optional

import requests

from kisansathi.api.schemas import PlanRequest, TipRequest, TipResponse
from kisansathi.core.exceptions import EndpointError, MalformedResponseError, RateLimitedError
from kisansathi.core.settings import settings

logger = logging.getLogger("KisanSathi.FunctionsClient")


class FunctionsClient:
    """
    Client HTTP des fonctions distantes (tomorrow-plan, radio-tip).
    Un appel = une requête ; aucun retry automatique.
    """

    PLAN_PATH = "tomorrow-plan"
    TIP_PATH = "radio-tip"

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[int] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or settings.FUNCTIONS_BASE_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.FUNCTIONS_API_KEY
        self.timeout = timeout or settings.REQUEST_TIMEOUT
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url}/{path}"
        try:
            resp = self.session.post(url, json=payload, headers=self._headers(), timeout=self.timeout)
        except requests.RequestException as e:
            raise EndpointError(f"{path} unreachable: {e}") from e

        if resp.status_code == 429:
            raise RateLimitedError(self._error_message(resp) or "Too many requests")
        if not resp.ok:
            message = self._error_message(resp) or f"HTTP {resp.status_code}"
            raise EndpointError(f"{path} failed: {message}", status_code=resp.status_code)

        try:
            data = resp.json()
        except ValueError as e:
            raise MalformedResponseError(f"{path} returned invalid JSON") from e
        if not isinstance(data, dict):
            raise MalformedResponseError(f"{path} returned {type(data).__name__}, expected object")
        return data

    @staticmethod
    def _error_message(resp: requests.Response) -> Optional[str]:
        try:
            body = resp.json()
        except ValueError:
            return None
        return body.get("error") if isinstance(body, dict) else None

    def fetch_plan(self, req: PlanRequest) -> str:
        """Texte du plan ; "" si la fonction n'a rien produit."""
        data = self._post(self.PLAN_PATH, req.model_dump(by_alias=True))
        plan_text = data.get("planText", "")
        if not isinstance(plan_text, str):
            raise MalformedResponseError("planText is not a string")
        return plan_text

    def fetch_tip(self, req: TipRequest) -> TipResponse:
        data = self._post(self.TIP_PATH, req.model_dump(exclude_none=True))
        try:
            return TipResponse.model_validate(data)
        except ValueError as e:
            raise MalformedResponseError(f"radio-tip payload invalid: {e}") from e

    def close(self) -> None:
        self.session.close()

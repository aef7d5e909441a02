"""
Cliente HTTP mínimo para a REST API v2 do Jira.

Decisões arquiteturais:
    - Uma `requests.Session` por cliente, com autenticação básica
      (usuário + token) e headers JSON padrão
    - Retry automático (urllib3 `Retry`) apenas para GET, em 429 e 5xx
    - Respostas não-2xx viram `JiraApiError` com status e mensagem

Limites explícitos:
    - Não pagina buscas JQL
    - Não converte ADF para texto (ver `tracker.issue`)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Dict, List, Optional, Sequence, Tuple, Union

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from insight_flow.core.config.defaults import resolve_config


# tipos de campo conhecidos (schema.type do Jira → tipo canônico)
FIELD_TYPES = {
    "string": "string",
    "number": "number",
    "datetime": "datetime",
    "date": "date",
    "user": "user",
    "array": "array",
    "option": "option",
    "component": "component",
    "version": "version",
}


@dataclass(eq=False)
class JiraApiError(Exception):
    message: str
    status_code: Optional[int] = None
    details: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class CustomField:
    id: str
    name: str
    type: str
    description: Optional[str] = None


def _normalize_host(host: str) -> str:
    host = host.rstrip("/")
    return host if host.startswith("http") else f"https://{host}"


def _build_session(username: str, token: str, retries: int) -> requests.Session:
    session = requests.Session()
    session.auth = (username, token)
    session.headers.update(
        {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "User-Agent": "insight-flow/1.0 (+python requests)",
        }
    )
    retry = Retry(
        total=retries,
        backoff_factor=0.5,
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods=frozenset(["GET"]),
    )
    session.mount("https://", HTTPAdapter(max_retries=retry))
    session.mount("http://", HTTPAdapter(max_retries=retry))
    return session


class JiraClient:
    def __init__(
        self,
        host: str,
        username: str,
        token: str,
        *,
        timeout: Union[float, Tuple[float, float]] = 30,
        retries: int = 5,
        session: Optional[requests.Session] = None,
    ):
        if not host:
            raise ValueError("Jira host must be set")
        self.host = _normalize_host(host)
        self.timeout = timeout
        self.session = session if session is not None else _build_session(username, token, retries)

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None, **kwargs: Any) -> "JiraClient":
        """
        Cria o cliente a partir da seção `tracker` da configuração.

        O token é lido da variável de ambiente indicada em `tracker.token_env`.

        Raises:
            ValueError: Se host, usuário ou token não estiverem definidos.
        """
        tracker = resolve_config(config)["tracker"]
        token = os.getenv(tracker["token_env"] or "")
        if not tracker["username"] or not token:
            raise ValueError(
                f"tracker.username and the {tracker['token_env']} environment variable must be set"
            )
        return cls(
            tracker["host"],
            tracker["username"],
            token,
            timeout=tracker["timeout"],
            **kwargs,
        )

    def _url(self, endpoint: str) -> str:
        return f"{self.host}/rest/api/2{endpoint}"

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        kwargs.setdefault("timeout", self.timeout)
        response = self.session.request(method, self._url(endpoint), **kwargs)
        if not response.ok:
            try:
                body = response.json()
            except ValueError:
                body = {}
            messages = body.get("errorMessages") if isinstance(body, dict) else None
            reason = (
                (body.get("message") if isinstance(body, dict) else None)
                or ("; ".join(messages) if messages else None)
                or response.reason
                or "Unknown error"
            )
            raise JiraApiError(
                message=f"Jira API Error: {reason}",
                status_code=response.status_code,
                details={"method": method, "endpoint": endpoint, "body": body},
            )
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    # ------------------------------------------------------------------
    # Issues
    # ------------------------------------------------------------------
    def get_issue(self, key: str, expand: Sequence[str] = ()) -> Dict[str, Any]:
        params = {"fields": "*all"}
        if expand:
            params["expand"] = ",".join(expand)
        return self._request("GET", f"/issue/{key}", params=params)

    def update_issue(self, key: str, fields: Dict[str, Any]) -> None:
        self._request("PUT", f"/issue/{key}", json={"fields": fields})

    def get_transitions(self, key: str) -> List[Dict[str, Any]]:
        data = self._request("GET", f"/issue/{key}/transitions") or {}
        return list(data.get("transitions", []))

    def transition_issue(self, key: str, transition_id: str, fields: Optional[Dict[str, Any]] = None) -> None:
        payload: Dict[str, Any] = {"transition": {"id": transition_id}}
        if fields:
            payload["fields"] = fields
        self._request("POST", f"/issue/{key}/transitions", json=payload)

    def add_comment(self, key: str, body: str) -> Dict[str, Any]:
        return self._request("POST", f"/issue/{key}/comment", json={"body": body})

    def add_attachment(self, key: str, filename: str, content: Union[bytes, BinaryIO]) -> List[Dict[str, Any]]:
        # multipart: o Content-Type JSON da sessão precisa ser removido
        return self._request(
            "POST",
            f"/issue/{key}/attachments",
            files={"file": (filename, content)},
            headers={"X-Atlassian-Token": "no-check", "Content-Type": None},
        )

    def get_custom_fields(self) -> List[CustomField]:
        fields = self._request("GET", "/field") or []
        return [
            CustomField(
                id=f["id"],
                name=f["name"],
                type=FIELD_TYPES.get((f.get("schema") or {}).get("type", ""), "string"),
                description=f.get("description"),
            )
            for f in fields
            if f.get("custom")
        ]

# tests/conftest.py
"""
Fixtures compartilhados para testes do Insight Flow.

Este módulo define fixtures reutilizáveis que fornecem:
- configurações mínimas e determinísticas (YAML como string)
- um `LanguageModel` fake com respostas roteirizadas por schema
- um `SearchTool` fake
- uma sessão HTTP fake para o cliente do Jira

O objetivo destas fixtures é permitir testes do core e da orquestração
sem depender de:
- rede (LLM, busca, Jira)
- variáveis de ambiente
- plugins de pytest para asyncio (usa-se `asyncio.run`)

Decisões arquiteturais:
    - Fakes usam duck typing em vez de herança
    - Fakes registram as chamadas recebidas para asserts posteriores
    - Imports do pacote são realizados de forma lazy

Invariantes:
    - Nenhuma fixture realiza I/O de rede
    - Todas as fixtures são seguras para execução em paralelo
"""

import asyncio
from typing import Any, Dict, List

import pytest


# =====================================================
# Config
# =====================================================

@pytest.fixture
def project_like_config_defaults_yaml() -> str:
    """YAML de defaults semelhante a `config/config.defaults.yaml`."""
    return """\
engine:
  unresolved_label: error
research:
  max_refinements: 0
memory:
  chunk_size: 1000
  chunk_overlap: 200
  search_k: 3
"""


@pytest.fixture
def project_like_config_local_yaml() -> str:
    """YAML de override local (apenas chaves alteradas)."""
    return """\
engine:
  unresolved_label: ignore
memory:
  search_k: 5
"""


# =====================================================
# Async
# =====================================================

@pytest.fixture
def run():
    """
    Executa uma coroutine até o fim em um event loop novo.

    Uso:
        result = run(compiled.invoke({...}))
    """
    return asyncio.run


# =====================================================
# Orquestração (fakes)
# =====================================================

class _FakeModel:
    """
    LanguageModel fake.

    `responses` mapeia o nome do schema (ex.: "ResearchResults") para um
    dict (sempre a mesma resposta) ou uma lista de dicts (consumida em
    ordem; o último item se repete).
    """

    def __init__(self, responses: Dict[str, Any], completion: str = "summary"):
        self.responses = dict(responses)
        self.completion = completion
        self.calls: List[tuple] = []

    async def structured(self, prompt, schema):
        self.calls.append((schema.__name__, prompt))
        data = self.responses[schema.__name__]
        if isinstance(data, list):
            item = data[0] if len(data) == 1 else data.pop(0)
            return schema.model_validate(item)
        return schema.model_validate(data)

    async def complete(self, prompt):
        self.calls.append(("complete", prompt))
        return self.completion

    def count(self, schema_name: str) -> int:
        return sum(1 for name, _ in self.calls if name == schema_name)


class _FakeSearch:
    def __init__(self, results: Dict[str, str] = None, fail_on=()):
        self.results = results or {}
        self.fail_on = set(fail_on)
        self.queries: List[str] = []

    async def search(self, query):
        self.queries.append(query)
        if query in self.fail_on:
            raise RuntimeError("search unavailable")
        return self.results.get(query, f"results for {query}")


@pytest.fixture
def FakeModel():
    return _FakeModel


@pytest.fixture
def FakeSearch():
    return _FakeSearch


# =====================================================
# Tracker (sessão HTTP fake)
# =====================================================

class _FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, reason: str = "OK"):
        self.status_code = status_code
        self._payload = payload
        self.reason = reason
        self.content = b"" if payload is None else b"{}"

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def json(self):
        if self._payload is None:
            raise ValueError("no JSON body")
        return self._payload


class _FakeSession:
    """Registra cada `request` e devolve as respostas enfileiradas em ordem."""

    def __init__(self, responses: List[_FakeResponse]):
        self.responses = list(responses)
        self.requests: List[Dict[str, Any]] = []

    def request(self, method, url, **kwargs):
        self.requests.append({"method": method, "url": url, **kwargs})
        return self.responses.pop(0)


@pytest.fixture
def FakeResponse():
    return _FakeResponse


@pytest.fixture
def FakeSession():
    return _FakeSession

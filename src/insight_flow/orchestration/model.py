"""
Contratos dos colaboradores externos da orquestração.

A camada de orquestração não conhece nenhum provedor de LLM ou de busca
concreto: ela depende apenas dos protocolos abaixo, que qualquer
adaptador (ou fake de teste) pode implementar.

Contrato:
    - `LanguageModel.structured(prompt, schema)` retorna uma instância
      validada de `schema` (subclasse de `pydantic.BaseModel`)
    - `LanguageModel.complete(prompt)` retorna texto livre
    - `SearchTool.search(query)` retorna o texto do resultado da busca

Todos os métodos são assíncronos.
"""

from __future__ import annotations

from typing import Protocol, Type, TypeVar, runtime_checkable

from pydantic import BaseModel


M = TypeVar("M", bound=BaseModel)


@runtime_checkable
class LanguageModel(Protocol):
    async def structured(self, prompt: str, schema: Type[M]) -> M:
        ...

    async def complete(self, prompt: str) -> str:
        ...


@runtime_checkable
class SearchTool(Protocol):
    async def search(self, query: str) -> str:
        ...

"""
Hashing canônico do Insight Flow.

Este módulo implementa a geração de hash determinístico para estruturas
JSON-compatíveis, utilizado para:
    - identidade estrutural da configuração efetiva
    - identidade do input validado registrado no RunTrace

Política de hashing (v1):
    - Serialização JSON canônica (chaves ordenadas, separadores compactos)
    - Codificação UTF-8
    - Algoritmo SHA-256
    - Valores não serializáveis são convertidos via `str()`

Invariantes:
    - Estruturas equivalentes produzem o mesmo hash
    - O valor gerado é sempre uma string hexadecimal de 64 caracteres

Limites explícitos:
    - Não valida semântica
    - Não persiste o hash
"""


import json
import hashlib
from typing import Any, Dict


def compute_hash(data: Any) -> str:
    """Gera o hash SHA-256 da serialização JSON canônica de `data`."""
    canonical_json = json.dumps(
        data,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )
    return hashlib.sha256(canonical_json.encode("utf-8")).hexdigest()


def compute_config_hash(config: Dict[str, Any]) -> str:
    """
    Gera um hash determinístico da configuração efetiva.

    Args:
        config (Dict[str, Any]): Configuração efetiva resolvida.

    Returns:
        str: Hash SHA-256 hexadecimal da configuração.

    Raises:
        TypeError: Se o objeto fornecido não for um dicionário.
    """

    if not isinstance(config, dict):
        raise TypeError(
            f"Config para hashing deve ser dict, recebido: {type(config).__name__}"
        )

    return compute_hash(config)

"""
Utilitário canônico de deep-merge de configuração.

Política de merge (v1):
    - dict → merge recursivo por chave
    - list → sobrescrita total (sem merge elemento a elemento)
    - None no override → sobrescrita explícita (desliga um valor)
    - escalar → sobrescrita direta, desde que o tipo coincida
    - conflito de tipos → erro estrutural explícito com o caminho da chave

Princípios fundamentais:
    - O merge é determinístico e puramente funcional
    - Nenhum input é mutado durante o processo

Limites explícitos:
    - Não carrega arquivos de configuração
    - Não realiza coerção de tipos
"""

from copy import deepcopy
from typing import Any, Dict

from .errors import ConfigTypeConflictError


def _merge_value(path: str, base_value: Any, override_value: Any) -> Any:
    if isinstance(base_value, dict) and isinstance(override_value, dict):
        return _merge_dicts(path, base_value, override_value)

    if override_value is None or isinstance(override_value, list):
        return deepcopy(override_value)

    if base_value is not None and type(base_value) is not type(override_value):
        raise ConfigTypeConflictError(
            f"Conflito de tipo na chave '{path}': "
            f"{type(base_value).__name__} vs {type(override_value).__name__}"
        )

    return deepcopy(override_value)


def _merge_dicts(prefix: str, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    result: Dict[str, Any] = deepcopy(base)
    for key, override_value in override.items():
        path = f"{prefix}.{key}" if prefix else str(key)
        if key in result:
            result[key] = _merge_value(path, result[key], override_value)
        else:
            result[key] = deepcopy(override_value)
    return result


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Realiza um deep-merge determinístico entre dois dicionários de configuração.

    A estrutura retornada é sempre um novo dicionário; chaves ausentes
    no override são preservadas da base.

    Args:
        base (Dict[str, Any]): Configuração base (ex.: defaults).
        override (Dict[str, Any]): Overrides explícitos da configuração.

    Returns:
        Dict[str, Any]: Nova configuração resultante do deep-merge.

    Raises:
        ConfigTypeConflictError: Se ocorrer conflito de tipo entre base e override.
    """
    if not isinstance(base, dict) or not isinstance(override, dict):
        raise ConfigTypeConflictError(
            f"Deep-merge requer dicts no nível raiz, recebido: "
            f"{type(base).__name__} vs {type(override).__name__}"
        )
    return _merge_dicts("", base, override)

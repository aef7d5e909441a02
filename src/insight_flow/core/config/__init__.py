# src/insight_flow/core/config/__init__.py

"""
Camada de configuração do Insight Flow.

Este pacote contém as estruturas e utilitários responsáveis por carregar,
mesclar, validar estruturalmente e identificar configurações do engine e
da camada de orquestração.

A configuração no Insight Flow é:
    - declarativa
    - determinística
    - explicitamente versionável

Responsabilidades do pacote:
    - Carregamento de arquivos de configuração (defaults + overrides locais)
    - Resolução de configuração final via deep-merge determinístico
    - Defaults embutidos para todas as seções conhecidas
    - Geração de hash canônico para rastreabilidade

Seções conhecidas:
    - engine   → política de labels não resolvidos
    - personas → papéis usados pela orquestração
    - research → limites do loop de refinamento de pesquisa
    - memory   → chunking e busca do context store
    - tracker  → acesso ao Jira

Limites explícitos:
    - Não executa pipeline
    - Não interage com Steps diretamente
"""

from .defaults import DEFAULT_CONFIG, resolve_config
from .errors import (
    ConfigError,
    ConfigTypeConflictError,
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
)
from .hashing import compute_config_hash, compute_hash
from .loader import load_config, load_effective_config
from .merge import deep_merge

__all__ = [
    "DEFAULT_CONFIG",
    "resolve_config",
    "ConfigError",
    "ConfigTypeConflictError",
    "DefaultsNotFoundError",
    "InvalidConfigRootTypeError",
    "UnsupportedConfigFormatError",
    "compute_config_hash",
    "compute_hash",
    "load_config",
    "load_effective_config",
    "deep_merge",
]

"""
Exceções canônicas da camada de configuração do Insight Flow.

As exceções aqui definidas representam violações estruturais explícitas
durante carregamento e resolução de configuração, e não erros de
execução de pipelines.

Invariantes:
    - Todas as exceções de configuração herdam de `ConfigError`
    - Nenhuma exceção representa falha de Step
"""


class ConfigError(Exception):
    """
    Exceção base para erros relacionados à configuração do Insight Flow.

    Permite captura genérica de erros de configuração, distinta das
    exceções do engine (`insight_flow.core.exceptions`).
    """


class DefaultsNotFoundError(ConfigError):
    """
    Exceção levantada quando o arquivo de configuração base (defaults)
    não é encontrado no caminho especificado.

    Decisões arquiteturais:
        - O arquivo de defaults é obrigatório em `load_config`
        - Não há criação automática de defaults em disco
    """


class UnsupportedConfigFormatError(ConfigError):
    """
    Exceção levantada quando o formato do arquivo de configuração
    não é suportado pelo loader.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)
    """


class InvalidConfigRootTypeError(ConfigError):
    """
    Exceção levantada quando o conteúdo raiz da configuração
    não é um dicionário (`dict`).
    """


class ConfigTypeConflictError(ConfigError):
    """
    Exceção levantada quando ocorre conflito de tipos durante o deep-merge.

    Exemplo de conflito:
        - base:     {"engine": {"unresolved_label": "error"}}
        - override: {"engine": "ignore"}

    Invariantes:
        - Nenhum merge parcial é produzido em caso de conflito
    """

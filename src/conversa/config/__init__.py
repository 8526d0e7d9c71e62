"""Configurações centralizadas do conversa.

Este módulo exporta:
- Settings: classe de configuração via variáveis de ambiente
- get_settings: função cacheada para obter instância única
- DEFAULT_GREETING: saudação sintética padrão

Uso típico:
    from conversa.config import get_settings
"""

from conversa.config.settings import DEFAULT_GREETING, Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "DEFAULT_GREETING",
]

"""
config.py - Configurações do servidor (seção avrAsmNavigator)

Propósito:
    Converte o dicionário enviado pelo cliente (initializationOptions ou
    workspace/didChangeConfiguration) em um Settings imutável.

Notas de implementação:
    - Settings é trocado inteiro a cada mudança; handlers leem no momento da chamada
    - Valores numéricos inválidos voltam ao padrão; válidos são limitados e truncados
    - Aceita {'avrAsmNavigator': {...}} ou a seção diretamente
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Optional

logger = logging.getLogger(__name__)

CONFIG_SECTION = "avrAsmNavigator"

DEFAULT_MAX_HOVER_RESULTS = 6
DEFAULT_MAX_COMPLETION_ITEMS = 200
DEFAULT_MAX_WORKSPACE_SCAN_FILES = 400
DEFAULT_MAX_WORKSPACE_SYMBOLS = 300
DEFAULT_MAX_REFERENCE_RESULTS = 500

SETTING_KEYS = frozenset(
    {
        "enableHover",
        "enableDefinition",
        "enableCompletion",
        "enableInstructionCompletion",
        "enableReferences",
        "includeDfpInWorkspaceSymbols",
        "autoDetectMplabProject",
        "dfpPath",
        "device",
        "maxHoverResults",
        "maxCompletionItems",
        "maxWorkspaceScanFiles",
        "maxWorkspaceSymbols",
        "maxReferenceResults",
    }
)


@dataclass(frozen=True)
class Settings:
    """Configuração efetiva do servidor."""

    enable_hover: bool = True
    enable_definition: bool = True
    enable_completion: bool = True
    enable_instruction_completion: bool = True
    enable_references: bool = True
    include_dfp_in_workspace_symbols: bool = True
    auto_detect_mplab_project: bool = True
    dfp_path: str = ""
    device: str = ""
    max_hover_results: int = DEFAULT_MAX_HOVER_RESULTS
    max_completion_items: int = DEFAULT_MAX_COMPLETION_ITEMS
    max_workspace_scan_files: int = DEFAULT_MAX_WORKSPACE_SCAN_FILES
    max_workspace_symbols: int = DEFAULT_MAX_WORKSPACE_SYMBOLS
    max_reference_results: int = DEFAULT_MAX_REFERENCE_RESULTS

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "Settings":
        """Cria Settings a partir do dicionário do cliente."""
        section = extract_section(data)
        return cls(
            enable_hover=_bool(section, "enableHover", True),
            enable_definition=_bool(section, "enableDefinition", True),
            enable_completion=_bool(section, "enableCompletion", True),
            enable_instruction_completion=_bool(
                section, "enableInstructionCompletion", True
            ),
            enable_references=_bool(section, "enableReferences", True),
            include_dfp_in_workspace_symbols=_bool(
                section, "includeDfpInWorkspaceSymbols", True
            ),
            auto_detect_mplab_project=_bool(section, "autoDetectMplabProject", True),
            dfp_path=_str(section, "dfpPath"),
            device=_str(section, "device"),
            max_hover_results=clamp_number(
                section.get("maxHoverResults"), DEFAULT_MAX_HOVER_RESULTS, 1, 100
            ),
            max_completion_items=clamp_number(
                section.get("maxCompletionItems"), DEFAULT_MAX_COMPLETION_ITEMS, 1, 5000
            ),
            max_workspace_scan_files=clamp_number(
                section.get("maxWorkspaceScanFiles"),
                DEFAULT_MAX_WORKSPACE_SCAN_FILES,
                20,
                10000,
            ),
            max_workspace_symbols=clamp_number(
                section.get("maxWorkspaceSymbols"), DEFAULT_MAX_WORKSPACE_SYMBOLS, 20, 20000
            ),
            max_reference_results=clamp_number(
                section.get("maxReferenceResults"), DEFAULT_MAX_REFERENCE_RESULTS, 20, 20000
            ),
        )


def extract_section(data) -> dict[str, Any]:
    """Retorna a seção avrAsmNavigator (ou o próprio dict se já for a seção)."""
    if not isinstance(data, dict):
        return {}
    section = data.get(CONFIG_SECTION, data)
    return section if isinstance(section, dict) else {}


def affects_configuration(settings) -> bool:
    """
    Verifica se um didChangeConfiguration toca a seção do servidor.

    Aceita o wrapper {"avrAsmNavigator": {...}} ou a seção diretamente
    (qualquer chave conhecida). Sem settings (clientes em modo pull) não há
    como saber: assume que sim.
    """
    if settings is None:
        return True
    if not isinstance(settings, dict):
        return False
    if CONFIG_SECTION in settings:
        return True
    return any(key in SETTING_KEYS for key in settings)


def clamp_number(value, default: int, min_value: int = 1, max_value: int = 10000) -> int:
    """Converte para int limitado a [min_value, max_value]; inválido → default."""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.debug(f"Valor numérico inválido na configuração: {value!r}")
        return default
    if not math.isfinite(number):
        return default
    if number < min_value:
        return min_value
    if number > max_value:
        return max_value
    return int(number)


def _bool(section: dict[str, Any], key: str, default: bool) -> bool:
    value = section.get(key)
    if not isinstance(value, bool):
        return default
    return value


def _str(section: dict[str, Any], key: str) -> str:
    value = section.get(key) or ""
    if not isinstance(value, str):
        return ""
    return value.strip()

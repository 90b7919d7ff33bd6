"""
fs_utils.py - Acesso tolerante ao sistema de arquivos

Qualquer falha de I/O (OSError) é tratada como ausência: None, False ou [].
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def file_exists(path: Path) -> bool:
    try:
        return Path(path).is_file()
    except OSError:
        return False


def is_directory(path: Path) -> bool:
    try:
        return Path(path).is_dir()
    except OSError:
        return False


def list_dir_safe(path: Path) -> list[str]:
    """Nomes das entradas do diretório; [] se não existir ou não for legível."""
    try:
        return [entry.name for entry in Path(path).iterdir()]
    except OSError:
        return []


def read_text_if_exists(path: Path) -> Optional[str]:
    """Conteúdo UTF-8 do arquivo (bytes inválidos substituídos) ou None."""
    try:
        return Path(path).read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.debug(f"Leitura falhou para {path}: {e}")
        return None

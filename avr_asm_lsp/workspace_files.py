"""
workspace_files.py - Arquivos assembly do workspace

Propósito:
    Enumera os arquivos assembly das pastas do workspace e fornece o texto
    de cada um para workspace symbols e references.

Notas de implementação:
    - Extensões: .S .s .asm .ASM .as .AS .inc .INC
    - Diretórios ignorados: _build, out, cmake, node_modules, .git
    - Limite de arquivos (maxWorkspaceScanFiles) e de tamanho por arquivo
    - Buffers abertos no editor têm prioridade sobre o conteúdo em disco
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, Iterator, Mapping

from avr_asm_lsp.converters import file_uri, uri_to_path
from avr_asm_lsp.fs_utils import read_text_if_exists

logger = logging.getLogger(__name__)

WORKSPACE_ASM_EXTENSIONS = frozenset({".S", ".s", ".asm", ".ASM", ".as", ".AS", ".inc", ".INC"})
WORKSPACE_EXCLUDED_DIRS = frozenset({"_build", "out", "cmake", "node_modules", ".git"})
MAX_SCAN_FILE_BYTES = 2 * 1024 * 1024


def is_assembly_file_path(path) -> bool:
    """Extensão assembly, sem diferenciar maiúsculas (.s, .asm, .as, .inc)."""
    suffix = Path(str(path)).suffix.lower()
    return suffix in (".s", ".asm", ".as", ".inc")


def is_assembly_uri(uri: str) -> bool:
    if not uri or not uri.startswith("file:"):
        return False
    path = uri_to_path(uri)
    return path is not None and is_assembly_file_path(path)


def find_workspace_assembly_files(folders: Iterable[Path], max_files: int) -> list[Path]:
    """Busca arquivos assembly nas pastas do workspace, até max_files."""
    found: list[Path] = []
    for folder in folders:
        for dirpath, dirnames, filenames in os.walk(folder, onerror=_log_walk_error):
            dirnames[:] = sorted(d for d in dirnames if d not in WORKSPACE_EXCLUDED_DIRS)
            for name in sorted(filenames):
                if os.path.splitext(name)[1] not in WORKSPACE_ASM_EXTENSIONS:
                    continue
                found.append(Path(dirpath) / name)
                if len(found) >= max_files:
                    return found
    return found


def iter_workspace_texts(
    folders: Iterable[Path],
    open_documents: Mapping[str, str],
    max_files: int,
    extra_uris: Iterable[str] = (),
) -> Iterator[tuple[str, str]]:
    """
    Gera (uri, texto) para cada arquivo assembly do workspace.

    Args:
        folders: Pastas do workspace
        open_documents: URI → texto dos buffers abertos (autoritativos)
        max_files: Limite de arquivos lidos do disco
        extra_uris: URIs adicionais (ex: documento do request)
    """
    uris: dict[str, None] = {}
    for path in find_workspace_assembly_files(folders, max_files):
        uris[file_uri(path)] = None
    for uri in open_documents:
        uris[uri] = None
    for uri in extra_uris:
        uris[uri] = None

    for uri in uris:
        text = open_documents.get(uri)
        if text is None:
            text = _read_workspace_file(uri)
        if text:
            yield uri, text


def _read_workspace_file(uri: str):
    path = uri_to_path(uri)
    if path is None:
        return None
    try:
        if path.stat().st_size > MAX_SCAN_FILE_BYTES:
            logger.debug(f"Arquivo grande demais, ignorado: {path}")
            return None
    except OSError:
        return None
    return read_text_if_exists(path)


def _log_walk_error(error: OSError) -> None:
    logger.debug(f"Erro ao percorrer workspace: {error}")

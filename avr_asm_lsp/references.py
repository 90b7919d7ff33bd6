"""
references.py - Find All References para símbolos AVR

Propósito:
    Implementa textDocument/references procurando o identificador inteiro
    em todos os arquivos assembly do workspace.

LSP Feature:
    textDocument/references → Lista de Location com todas as referências

Notas de implementação:
    - Ocorrências que são a própria definição (label/.equ/.set na mesma
      coluna) só entram com includeDeclaration
    - Com includeDeclaration, as ocorrências do pack DFP são anexadas
    - Limite: maxReferenceResults; deduplicação por (uri, linha, coluna)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping, Optional

from lsprotocol.types import Location

from avr_asm_lsp.config import Settings
from avr_asm_lsp.converters import (
    IDENTIFIER_CHARS,
    dfp_symbol_location,
    split_lines,
    symbol_range,
)
from avr_asm_lsp.dfp_index import DfpIndex
from avr_asm_lsp.local_symbols import is_definition_occurrence
from avr_asm_lsp.workspace_files import is_assembly_uri, iter_workspace_texts

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SymbolMatch:
    line: int
    column: int
    line_text: str


def find_symbol_matches(text: str, symbol: str) -> list[SymbolMatch]:
    """Ocorrências de symbol como identificador inteiro (line/column 0-based)."""
    if not text or not symbol:
        return []

    regex = re.compile(
        rf"(?<![{IDENTIFIER_CHARS}]){re.escape(symbol)}(?![{IDENTIFIER_CHARS}])"
    )
    matches: list[SymbolMatch] = []
    for line_index, line_text in enumerate(split_lines(text)):
        for match in regex.finditer(line_text):
            matches.append(SymbolMatch(line_index, match.start(), line_text))
    return matches


def compute_references(
    symbol: Optional[str],
    uri: str,
    folders: Iterable[Path],
    open_documents: Mapping[str, str],
    index: Optional[DfpIndex],
    settings: Settings,
    include_declaration: bool = False,
) -> list[Location]:
    """
    Encontra todas as referências a um símbolo.

    Args:
        symbol: Identificador sob o cursor
        uri: Documento do request (sempre incluído se for assembly)
        folders: Pastas do workspace
        open_documents: URI → texto dos documentos assembly abertos
        index: Índice DFP (usado apenas com include_declaration)
        settings: Configuração atual
        include_declaration: Incluir definições locais e do pack

    Returns:
        Lista de Location (vazia se nada encontrado)
    """
    if not settings.enable_references or not symbol:
        return []

    max_references = settings.max_reference_results
    locations: list[Location] = []
    seen: set[str] = set()

    def add(location_uri: str, line: int, column: int) -> bool:
        key = f"{location_uri}:{line}:{column}"
        if key in seen:
            return False
        seen.add(key)
        locations.append(Location(uri=location_uri, range=symbol_range(line, column, symbol)))
        return len(locations) >= max_references

    extra_uris = [uri] if is_assembly_uri(uri) else []
    texts = iter_workspace_texts(
        folders, open_documents, settings.max_workspace_scan_files, extra_uris
    )
    for text_uri, text in texts:
        for match in find_symbol_matches(text, symbol):
            if not include_declaration and is_definition_occurrence(
                match.line_text, symbol, match.column
            ):
                continue
            if add(text_uri, match.line, match.column):
                return locations

    if include_declaration and index:
        for hit in index.hits(symbol):
            location = dfp_symbol_location(hit, symbol)
            start = location.range.start
            if add(location.uri, start.line, start.character):
                break

    return locations

"""
workspace_symbols.py - Busca de símbolos em todo o workspace (workspace/symbol)

Propósito:
    Filtra, por substring sem diferenciar maiúsculas, os símbolos locais de
    todos os arquivos assembly do workspace e, opcionalmente, os símbolos
    do pack DFP.

Notas de implementação:
    - Query vazia → lista vazia
    - Locais primeiro (buffers abertos prevalecem sobre o disco), depois pack
    - Deduplicação por (uri, linha, coluna, símbolo)
    - Limite total: maxWorkspaceSymbols
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Mapping, Optional

from lsprotocol.types import Location, SymbolInformation, SymbolKind

from avr_asm_lsp.config import Settings
from avr_asm_lsp.converters import dfp_symbol_location, local_kind_to_symbol_kind, symbol_range
from avr_asm_lsp.dfp_index import DfpIndex
from avr_asm_lsp.local_symbols import parse_local_symbols
from avr_asm_lsp.workspace_files import iter_workspace_texts

logger = logging.getLogger(__name__)


def compute_workspace_symbols(
    query: str,
    folders: Iterable[Path],
    open_documents: Mapping[str, str],
    index: Optional[DfpIndex],
    settings: Settings,
) -> list[SymbolInformation]:
    """
    Busca símbolos no workspace.

    Args:
        query: Texto digitado pelo usuário
        folders: Pastas do workspace
        open_documents: URI → texto dos documentos assembly abertos
        index: Índice DFP (None quando includeDfpInWorkspaceSymbols=false)
        settings: Configuração atual (limites)
    """
    normalized = (query or "").strip().lower()
    if not normalized:
        return []

    max_symbols = settings.max_workspace_symbols
    results: list[SymbolInformation] = []
    seen: set[str] = set()

    def add(info: SymbolInformation, key: str) -> bool:
        if key in seen:
            return False
        seen.add(key)
        results.append(info)
        return len(results) >= max_symbols

    texts = iter_workspace_texts(folders, open_documents, settings.max_workspace_scan_files)
    for uri, text in texts:
        for entry in parse_local_symbols(text).entries:
            if normalized not in entry.symbol.lower():
                continue
            info = SymbolInformation(
                name=entry.symbol,
                kind=local_kind_to_symbol_kind(entry.kind),
                location=Location(
                    uri=uri, range=symbol_range(entry.line, entry.column, entry.symbol)
                ),
                container_name=f"{entry.kind} local symbol",
            )
            if add(info, f"{uri}:{entry.line}:{entry.column}:{entry.symbol}"):
                return results

    if index and settings.include_dfp_in_workspace_symbols:
        for symbol in index.symbol_list:
            if normalized not in symbol.lower():
                continue
            first = index.first(symbol)
            if not first:
                continue
            info = SymbolInformation(
                name=symbol,
                kind=SymbolKind.Constant,
                location=dfp_symbol_location(first, symbol),
                container_name=f"{first.kind} ({index.device_label} pack)",
            )
            if add(info, f"dfp:{first.file}:{first.line}:{symbol}"):
                break

    return results

"""
cache.py - Caches de símbolos locais e do índice DFP

Propósito:
    Evita reprocessar documentos e rescanear o pack a cada request.

Componentes principais:
    - LocalSymbolCache: LocalSymbols por URI, válido para uma versão do documento
    - DfpIndexCache: índice DFP do processo, com build single-flight

Notas de implementação:
    - LocalSymbolCache: versão diferente → parse completo (sem diff incremental);
      entrada removida em didClose
    - DfpIndexCache: chamadas concorrentes aguardam a mesma task de build
    - invalidate() descarta índice e build em andamento; um build antigo que
      termine depois não repovoa o cache (controle por geração)
    - Invalidar em: mudança de configuração, save de .mplab.json, rebuild forçado
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from avr_asm_lsp.dfp_index import DfpIndex
from avr_asm_lsp.local_symbols import LocalSymbols, parse_local_symbols

logger = logging.getLogger(__name__)


class LocalSymbolCache:
    """Cache de LocalSymbols por URI de documento."""

    def __init__(self):
        self._cache: dict[str, LocalSymbols] = {}

    def get(self, uri: str, version: Optional[int], text: str) -> LocalSymbols:
        """Retorna símbolos da versão pedida, reprocessando se necessário."""
        cached = self._cache.get(uri)
        if cached is not None and version is not None and cached.version == version:
            return cached

        parsed = parse_local_symbols(text, version)
        self._cache[uri] = parsed
        return parsed

    def evict(self, uri: str) -> None:
        """Remove documento do cache (didClose)."""
        if self._cache.pop(uri, None) is not None:
            logger.debug(f"Símbolos locais descartados: {uri}")

    def has(self, uri: str) -> bool:
        return uri in self._cache


class DfpIndexCache:
    """Índice DFP compartilhado pelo processo, construído sob demanda."""

    def __init__(self):
        self._index: Optional[DfpIndex] = None
        self._task: Optional[asyncio.Task] = None
        self._generation = 0
        self.build_count = 0

    @property
    def index(self) -> Optional[DfpIndex]:
        return self._index

    def invalidate(self) -> None:
        """Descarta índice e build em andamento."""
        had_state = self._index is not None or self._task is not None
        self._index = None
        self._task = None
        self._generation += 1
        if had_state:
            logger.info("Índice DFP invalidado")

    async def get(self, builder: Callable[[], DfpIndex], force: bool = False) -> DfpIndex:
        """
        Retorna o índice em cache ou aguarda o build em andamento.

        Args:
            builder: Função síncrona que constrói o índice (roda em thread)
            force: Descarta o cache antes (comando rebuildIndex)
        """
        if force:
            self.invalidate()

        if self._index is not None:
            return self._index

        if self._task is None:
            self._task = asyncio.ensure_future(self._build(builder, self._generation))

        # shield: cancelar um request não cancela o build compartilhado
        return await asyncio.shield(self._task)

    async def _build(self, builder: Callable[[], DfpIndex], generation: int) -> DfpIndex:
        self.build_count += 1
        try:
            index = await asyncio.to_thread(builder)
        finally:
            if generation == self._generation:
                self._task = None

        if generation == self._generation:
            self._index = index
        else:
            logger.debug("Build DFP descartado: cache invalidado durante a varredura")
        return index

"""
dfp_index.py - Índice global de símbolos do Device Family Pack

Propósito:
    Varre linha a linha os arquivos resolvidos (header C, .inc, .atdf) e
    monta o mapa símbolo → ocorrências usado por hover, definição,
    completion, workspace symbols e references.

Padrões reconhecidos por linha (uma linha pode gerar vários símbolos):
    #define NOME ...         → macro
    .equ NOME = valor        → equ
    NOME = (valor),          → enum   (enums dos headers XC8)
    name="NOME"              → atdf   (somente arquivos .atdf)

Notas de implementação:
    - No máximo MAX_ENTRIES_PER_SYMBOL ocorrências por símbolo
    - symbol_list ordenada sem diferenciar maiúsculas (empate pelo texto exato)
    - Arquivo ilegível é ignorado e não entra em scanned_files
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

from avr_asm_lsp.config import Settings
from avr_asm_lsp.converters import IDENTIFIER_PATTERN, split_lines, trim_line
from avr_asm_lsp.dfp_resolver import ResolvedTarget, resolve_index_files
from avr_asm_lsp.fs_utils import read_text_if_exists

logger = logging.getLogger(__name__)

MAX_ENTRIES_PER_SYMBOL = 20

_DEFINE_REGEX = re.compile(r"^\s*#define\s+([A-Za-z_][A-Za-z0-9_]*)\b(.*)$")
_EQU_REGEX = re.compile(rf"^\s*\.equ\s+({IDENTIFIER_PATTERN})\s*=\s*(.+)$")
_ENUM_REGEX = re.compile(r"^\s*([A-Za-z_][A-Za-z0-9_]*)\s*=\s*\(([^)]*)\)\s*,?")
_ATDF_NAME_REGEX = re.compile(r'\bname="([A-Za-z_][A-Za-z0-9_]*)"')


@dataclass(frozen=True)
class DfpEntry:
    """Ocorrência de um símbolo em arquivo do pack (line 1-based)."""

    file: str
    line: int
    text: str
    kind: str


@dataclass(frozen=True)
class ParsedSymbol:
    symbol: str
    detail: str
    kind: str


@dataclass
class DfpIndex:
    """Índice de símbolos do pack para o dispositivo resolvido."""

    pack_root: str = ""
    device: str = ""
    dev_lib_name: Optional[str] = None
    detected_project_file: Optional[str] = None
    symbols: dict[str, list[DfpEntry]] = field(default_factory=dict)
    symbol_list: list[str] = field(default_factory=list)
    scanned_files: list[str] = field(default_factory=list)
    built_at: datetime = field(default_factory=datetime.now)

    def hits(self, symbol: str) -> list[DfpEntry]:
        return self.symbols.get(symbol, [])

    def first(self, symbol: str) -> Optional[DfpEntry]:
        entries = self.symbols.get(symbol)
        return entries[0] if entries else None

    @property
    def device_label(self) -> str:
        return self.device or "AVR"


def _is_atdf_symbol(candidate: str) -> bool:
    # Só nomes com maiúscula e "_", ou totalmente maiúsculos
    has_upper = any(ch.isupper() for ch in candidate)
    return has_upper and ("_" in candidate or candidate == candidate.upper())


def parse_symbols_from_line(line: str, kind: str) -> list[ParsedSymbol]:
    """Extrai todos os símbolos reconhecidos em uma linha de arquivo do pack."""
    found: list[ParsedSymbol] = []

    match = _DEFINE_REGEX.match(line)
    if match:
        found.append(ParsedSymbol(match.group(1), trim_line(match.group(0)), "macro"))

    match = _EQU_REGEX.match(line)
    if match:
        found.append(ParsedSymbol(match.group(1), trim_line(match.group(0)), "equ"))

    match = _ENUM_REGEX.match(line)
    if match:
        found.append(ParsedSymbol(match.group(1), trim_line(match.group(0)), "enum"))

    if kind == "atdf":
        match = _ATDF_NAME_REGEX.search(line)
        if match and _is_atdf_symbol(match.group(1)):
            found.append(ParsedSymbol(match.group(1), trim_line(match.group(0)), "atdf"))

    return found


def add_symbol(
    symbols: dict[str, list[DfpEntry]], symbol_list: list[str], symbol: str, entry: DfpEntry
) -> None:
    if not symbol:
        return
    entries = symbols.get(symbol)
    if entries is None:
        entries = []
        symbols[symbol] = entries
        symbol_list.append(symbol)
    if len(entries) < MAX_ENTRIES_PER_SYMBOL:
        entries.append(entry)


def scan_files(
    files: Iterable[tuple[str, Path]],
) -> tuple[dict[str, list[DfpEntry]], list[str], list[str]]:
    """Varre os arquivos; retorna (symbols, symbol_list ordenada, scanned_files)."""
    symbols: dict[str, list[DfpEntry]] = {}
    symbol_list: list[str] = []
    scanned_files: list[str] = []

    for kind, file_path in files:
        text = read_text_if_exists(file_path)
        if not text:
            logger.debug(f"Arquivo do pack ignorado: {file_path}")
            continue

        path_str = str(file_path)
        scanned_files.append(path_str)
        for line_number, line in enumerate(split_lines(text), start=1):
            for item in parse_symbols_from_line(line, kind):
                add_symbol(
                    symbols,
                    symbol_list,
                    item.symbol,
                    DfpEntry(file=path_str, line=line_number, text=line, kind=item.kind),
                )

    symbol_list.sort(key=lambda name: (name.lower(), name))
    return symbols, symbol_list, scanned_files


def build_dfp_index_from_target(target: ResolvedTarget) -> DfpIndex:
    symbols, symbol_list, scanned_files = scan_files(target.files)
    index = DfpIndex(
        pack_root=target.pack_root,
        device=target.device,
        dev_lib_name=target.dev_lib_name,
        detected_project_file=(
            str(target.detected_project_file) if target.detected_project_file else None
        ),
        symbols=symbols,
        symbol_list=symbol_list,
        scanned_files=scanned_files,
    )
    logger.info(
        f"Índice DFP construído: {len(symbol_list)} símbolos em "
        f"{len(scanned_files)} arquivo(s) (device={index.device_label})"
    )
    return index


def build_dfp_index(
    settings: Settings,
    workspace_folders: Iterable[Path] = (),
    packs_home: Optional[Path] = None,
) -> DfpIndex:
    """Resolve o alvo e constrói o índice (síncrono; executado fora do event loop)."""
    target = resolve_index_files(settings, workspace_folders, packs_home)
    return build_dfp_index_from_target(target)

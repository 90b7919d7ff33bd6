"""
commands.py - Lógica dos comandos workspace/executeCommand

Propósito:
    Monta os resultados dos comandos do servidor sem depender do cliente:
    - avrAsmNavigator.lookupSymbol: candidatos (local + pack) para um símbolo
    - avrAsmNavigator.rebuildIndex: resumo do índice reconstruído
    - avrAsmNavigator.showActiveTarget: pack/device/arquivos do índice atual

Notas de implementação:
    - O handler no server.py cuida da interação (showMessageRequest/showDocument)
    - Picks do pack limitados a MAX_LOOKUP_PICKS
    - Locations em formato dict (camelCase) para serialização direta
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from lsprotocol.types import Location, Position, Range

from avr_asm_lsp.converters import dfp_location, relative_path, trim_line
from avr_asm_lsp.dfp_index import DfpIndex
from avr_asm_lsp.local_symbols import LocalSymbols

LOOKUP_SYMBOL_COMMAND = "avrAsmNavigator.lookupSymbol"
REBUILD_INDEX_COMMAND = "avrAsmNavigator.rebuildIndex"
SHOW_ACTIVE_TARGET_COMMAND = "avrAsmNavigator.showActiveTarget"

MAX_LOOKUP_PICKS = 50


@dataclass(frozen=True)
class LookupPick:
    """Candidato exibido ao usuário no lookup."""

    label: str
    description: str
    detail: str
    location: Location

    @property
    def title(self) -> str:
        return f"{self.label}  {self.description}"

    def to_dict(self) -> dict:
        start = self.location.range.start
        return {
            "label": self.label,
            "description": self.description,
            "detail": self.detail,
            "uri": self.location.uri,
            "line": start.line,
            "character": start.character,
        }


def compute_lookup_picks(
    symbol: str,
    uri: Optional[str],
    local_symbols: Optional[LocalSymbols],
    index: Optional[DfpIndex],
) -> list[LookupPick]:
    """Definição local (se houver documento) seguida das ocorrências do pack."""
    picks: list[LookupPick] = []

    local = local_symbols.get(symbol) if local_symbols else None
    if local and uri:
        start = Position(line=local.line, character=0)
        picks.append(
            LookupPick(
                label=f"Local {local.kind}: {symbol}",
                description=f"line {local.line + 1}",
                detail=local.detail,
                location=Location(uri=uri, range=Range(start=start, end=start)),
            )
        )

    if index:
        for hit in index.hits(symbol)[:MAX_LOOKUP_PICKS]:
            rel_path = relative_path(hit.file, index.pack_root)
            picks.append(
                LookupPick(
                    label=f"{symbol} ({hit.kind})",
                    description=f"{rel_path}:{hit.line}",
                    detail=trim_line(hit.text),
                    location=dfp_location(hit),
                )
            )

    return picks


def no_matches_message(symbol: str, index: Optional[DfpIndex]) -> str:
    target = index.device if index and index.device else "current AVR target"
    return f'No symbol matches found for "{symbol}" in {target}.'


def rebuild_summary(index: DfpIndex) -> dict:
    """Resultado do rebuildIndex; warning quando nenhum arquivo foi varrido."""
    device = index.device or "target"
    if not index.scanned_files:
        return {
            "success": False,
            "warning": (
                f'AVR ASM Navigator: no DFP symbol files found for {device} '
                f'at "{index.pack_root}".'
            ),
            "symbolCount": 0,
            "scannedFiles": [],
        }
    return {
        "success": True,
        "message": (
            f"AVR ASM Navigator index rebuilt for {device} "
            f"({len(index.symbol_list)} symbols)."
        ),
        "symbolCount": len(index.symbol_list),
        "scannedFiles": list(index.scanned_files),
    }


def active_target_info(index: DfpIndex) -> dict:
    return {
        "success": True,
        "packRoot": index.pack_root,
        "device": index.device,
        "devLibName": index.dev_lib_name,
        "projectFile": index.detected_project_file,
        "scannedFiles": list(index.scanned_files),
        "symbolCount": len(index.symbol_list),
        "builtAt": index.built_at.isoformat(),
    }

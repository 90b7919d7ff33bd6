"""
mplab.py - Detecção do alvo a partir de projetos MPLAB (.vscode/*.mplab.json)

Propósito:
    Lê os arquivos de projeto gerados pela extensão MPLAB para descobrir o
    dispositivo e o pack (vendor/nome/versão) configurados.

Notas de implementação:
    - Usa configurations[0].device e configurations[0].packs[]
    - Pack preferido: primeiro cujo nome contém "DFP"; senão o primeiro
    - JSON inválido ou ilegível é ignorado (segue para o próximo arquivo)
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from avr_asm_lsp.fs_utils import list_dir_safe, read_text_if_exists

logger = logging.getLogger(__name__)

DEFAULT_PACK_VENDOR = "Microchip"
MPLAB_PROJECT_SUFFIX = ".mplab.json"


@dataclass(frozen=True)
class PackRef:
    vendor: str = DEFAULT_PACK_VENDOR
    name: str = ""
    version: str = ""


@dataclass(frozen=True)
class MplabTarget:
    """Alvo detectado em um arquivo .mplab.json."""

    workspace_folder: Path
    project_file: Path
    device: str = ""
    pack: PackRef = field(default_factory=PackRef)


def is_mplab_project_file(path) -> bool:
    return str(path).endswith(MPLAB_PROJECT_SUFFIX)


def detect_mplab_target(workspace_folders: Iterable[Path]) -> Optional[MplabTarget]:
    """Retorna o primeiro alvo MPLAB encontrado nas pastas do workspace."""
    for folder in workspace_folders:
        vscode_dir = Path(folder) / ".vscode"
        project_files = sorted(
            name for name in list_dir_safe(vscode_dir) if is_mplab_project_file(name)
        )

        for name in project_files:
            full_path = vscode_dir / name
            target = parse_mplab_project(
                read_text_if_exists(full_path), Path(folder), full_path
            )
            if target:
                logger.info(f"Projeto MPLAB detectado: {full_path} (device={target.device!r})")
                return target
    return None


def parse_mplab_project(
    json_text: Optional[str], workspace_folder: Path, project_file: Path
) -> Optional[MplabTarget]:
    """Interpreta o conteúdo de um .mplab.json; None se não houver device nem pack."""
    if not json_text:
        return None

    try:
        parsed = json.loads(json_text)
    except ValueError:
        logger.debug(f"JSON inválido ignorado: {project_file}")
        return None
    if not isinstance(parsed, dict):
        return None

    configurations = parsed.get("configurations")
    if not isinstance(configurations, list):
        configurations = []
    config = configurations[0] if configurations else {}
    if not isinstance(config, dict):
        config = {}

    device = config.get("device")
    device = device.strip() if isinstance(device, str) else ""

    packs = config.get("packs")
    if not isinstance(packs, list):
        packs = []
    pack_candidate = next(
        (
            pack
            for pack in packs
            if isinstance(pack, dict)
            and isinstance(pack.get("name"), str)
            and "DFP" in pack["name"].upper()
        ),
        None,
    )
    if pack_candidate is None and packs:
        pack_candidate = packs[0]

    if not device and not pack_candidate:
        return None

    candidate = pack_candidate if isinstance(pack_candidate, dict) else {}
    pack = PackRef(
        vendor=_str_or(candidate.get("vendor"), DEFAULT_PACK_VENDOR),
        name=_str_or(candidate.get("name"), ""),
        version=_str_or(candidate.get("version"), ""),
    )
    return MplabTarget(
        workspace_folder=workspace_folder,
        project_file=project_file,
        device=device,
        pack=pack,
    )


def _str_or(value, default: str) -> str:
    return value if isinstance(value, str) else default

"""
dfp_resolver.py - Resolução do pack DFP, dispositivo e arquivos a indexar

Propósito:
    Decide qual Device Family Pack usar, qual dispositivo dentro dele e
    quais arquivos (header C, .inc do avrasm, .atdf) devem ser varridos.

Precedência:
    Pack root: dfpPath configurado > pack do projeto MPLAB > maior versão
               encontrada em ~/.mchp_packs/Microchip/*_DFP/<versão>
    Device:    device configurado > device do projeto MPLAB > .atdf mais
               curto do pack (empate resolvido lexicograficamente)
    Arquivos:  nome exato (via __AVR_DEV_LIB_NAME__ ou device) primeiro;
               depois o candidato mais específico que contém o token

Notas de implementação:
    - Tudo é síncrono; o cache executa a resolução em thread separada
    - Falha em encontrar arquivos não é erro: files fica vazio
    - compare_versions é numérico; a busca de packs desempata pela string
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from avr_asm_lsp.config import Settings
from avr_asm_lsp.fs_utils import file_exists, is_directory, list_dir_safe, read_text_if_exists
from avr_asm_lsp.mplab import DEFAULT_PACK_VENDOR, MplabTarget, detect_mplab_target

logger = logging.getLogger(__name__)

_DEV_LIB_NAME_REGEX = re.compile(r"__AVR_DEV_LIB_NAME__=([A-Za-z0-9_]+)")
_HEADER_NAME_REGEX = re.compile(r"^io.*\.h$", re.IGNORECASE)
_INC_NAME_REGEX = re.compile(r"def\.inc$", re.IGNORECASE)
_ATDF_NAME_REGEX = re.compile(r"\.atdf$", re.IGNORECASE)
_DEVICE_TOKEN_REGEX = re.compile(r"([0-9][0-9a-z]*)$", re.IGNORECASE)


def default_packs_home() -> Path:
    return Path.home() / ".mchp_packs"


@dataclass
class ResolvedTarget:
    """Pack, dispositivo e arquivos escolhidos para indexação."""

    pack_root: str = ""
    device: str = ""
    device_lower: str = ""
    token: str = ""
    dev_lib_name: Optional[str] = None
    files: list[tuple[str, Path]] = field(default_factory=list)
    detected_project_file: Optional[Path] = None


# --- Versões ---

def parse_version_parts(version_text) -> list[int]:
    return [int(part) for part in re.split(r"[^0-9]+", str(version_text or "")) if part]


def compare_versions(left, right) -> int:
    """
    Compara rótulos de versão numericamente (negativo, zero ou positivo).

    Segmentos ausentes valem 0, então "1.0" e "1.0.0" são iguais.
    """
    left_parts = parse_version_parts(left)
    right_parts = parse_version_parts(right)
    for i in range(max(len(left_parts), len(right_parts))):
        a = left_parts[i] if i < len(left_parts) else 0
        b = right_parts[i] if i < len(right_parts) else 0
        if a != b:
            return a - b
    return 0


def _compare_text(left: str, right: str) -> int:
    return (left > right) - (left < right)


# --- Helpers de nomes ---

def normalize_device(device_name: Optional[str]) -> str:
    return (device_name or "").strip().lower()


def extract_device_token(device_lower: str) -> str:
    """Token de busca: sufixo a partir do primeiro dígito (ex: avr128da48 → 128da48)."""
    match = _DEVICE_TOKEN_REGEX.search(device_lower)
    if match:
        return match.group(1).lower()
    return re.sub(r"[^a-z0-9]", "", device_lower)


def sort_by_specificity(names: Iterable[str]) -> list[str]:
    """Nomes mais curtos (mais específicos) primeiro; empate lexicográfico."""
    return sorted(names, key=lambda name: (len(name), name))


def _matches_token(name: str, token: str) -> bool:
    return not token or token.lower() in name.lower()


# --- Pack root ---

def find_default_pack_root(packs_home: Path, vendor: str = DEFAULT_PACK_VENDOR) -> str:
    """Maior versão entre os packs *_DFP do vendor; '' se nenhum existir."""
    vendor_root = Path(packs_home) / vendor
    best: Optional[tuple[str, str, Path]] = None

    for pack_name in sorted(list_dir_safe(vendor_root)):
        if not pack_name.upper().endswith("_DFP"):
            continue
        pack_root = vendor_root / pack_name
        if not is_directory(pack_root):
            continue

        for version in sorted(list_dir_safe(pack_root)):
            version_root = pack_root / version
            if not is_directory(version_root):
                continue
            if best is None:
                best = (pack_name, version, version_root)
                continue
            order = compare_versions(version, best[1]) or _compare_text(version, best[1])
            if order > 0 or (order == 0 and pack_name < best[0]):
                best = (pack_name, version, version_root)

    if best is None:
        logger.debug(f"Nenhum pack DFP encontrado em {vendor_root}")
        return ""
    return str(best[2])


def resolve_pack_root(
    configured_path: str, detected: Optional[MplabTarget], packs_home: Path
) -> str:
    if configured_path:
        return str(Path(configured_path).expanduser())
    if detected and detected.pack.name and detected.pack.version:
        return str(
            Path(packs_home) / detected.pack.vendor / detected.pack.name / detected.pack.version
        )
    return find_default_pack_root(packs_home)


# --- Device ---

def detect_device_from_pack(pack_root: str) -> str:
    """Nome do .atdf mais curto do pack (sem extensão); '' se não houver."""
    if not pack_root:
        return ""
    names = sort_by_specificity(
        name for name in list_dir_safe(Path(pack_root) / "atdf") if _ATDF_NAME_REGEX.search(name)
    )
    if not names:
        return ""
    return _ATDF_NAME_REGEX.sub("", names[0])


def parse_dev_lib_name(pack_root: str, device_lower: str) -> Optional[str]:
    """Lê __AVR_DEV_LIB_NAME__ dos device-specs do gcc ou do xc8."""
    if not pack_root or not device_lower:
        return None
    root = Path(pack_root)
    spec_paths = [
        root / "gcc" / "dev" / device_lower / "device-specs" / f"specs-{device_lower}",
        root / "xc8" / "avr" / "device-specs" / f"specs-{device_lower}",
    ]
    for spec_path in spec_paths:
        text = read_text_if_exists(spec_path)
        if not text:
            continue
        match = _DEV_LIB_NAME_REGEX.search(text)
        if match:
            return match.group(1)
    return None


# --- Arquivos ---

def resolve_header_path(pack_root: str, dev_lib_name: Optional[str], token: str) -> Optional[Path]:
    if not pack_root:
        return None
    root = Path(pack_root)
    include_dirs = [root / "xc8" / "avr" / "include" / "avr", root / "include" / "avr"]

    if dev_lib_name:
        for include_dir in include_dirs:
            candidate = include_dir / f"io{dev_lib_name}.h"
            if file_exists(candidate):
                return candidate

    for include_dir in include_dirs:
        candidates = sort_by_specificity(
            name
            for name in list_dir_safe(include_dir)
            if _HEADER_NAME_REGEX.match(name) and _matches_token(name, token)
        )
        if candidates:
            return include_dir / candidates[0]

    return None


def resolve_inc_path(pack_root: str, dev_lib_name: Optional[str], token: str) -> Optional[Path]:
    if not pack_root:
        return None
    inc_dir = Path(pack_root) / "avrasm" / "inc"

    if dev_lib_name:
        candidate = inc_dir / f"{dev_lib_name}def.inc"
        if file_exists(candidate):
            return candidate

    candidates = sort_by_specificity(
        name
        for name in list_dir_safe(inc_dir)
        if _INC_NAME_REGEX.search(name) and _matches_token(name, token)
    )
    if candidates:
        return inc_dir / candidates[0]
    return None


def resolve_atdf_path(
    pack_root: str, device_name: str, device_lower: str, token: str
) -> Optional[Path]:
    if not pack_root:
        return None
    atdf_dir = Path(pack_root) / "atdf"

    if device_name:
        direct = atdf_dir / f"{device_name}.atdf"
        if file_exists(direct):
            return direct

    names = list_dir_safe(atdf_dir)
    if device_lower:
        lower_exact = f"{device_lower}.atdf"
        exact = next((name for name in sorted(names) if name.lower() == lower_exact), None)
        if exact:
            return atdf_dir / exact

    candidates = sort_by_specificity(
        name for name in names if _ATDF_NAME_REGEX.search(name) and _matches_token(name, token)
    )
    if candidates:
        return atdf_dir / candidates[0]
    return None


def resolve_index_files(
    settings: Settings,
    workspace_folders: Iterable[Path] = (),
    packs_home: Optional[Path] = None,
) -> ResolvedTarget:
    """
    Resolve pack, dispositivo e arquivos para o índice DFP.

    Args:
        settings: Configuração atual (dfpPath, device, autoDetectMplabProject)
        workspace_folders: Pastas do workspace para buscar .mplab.json
        packs_home: Raiz dos packs (padrão: ~/.mchp_packs)

    Returns:
        ResolvedTarget, possivelmente sem arquivos
    """
    packs_home = Path(packs_home) if packs_home else default_packs_home()
    detected = (
        detect_mplab_target(workspace_folders) if settings.auto_detect_mplab_project else None
    )

    pack_root = resolve_pack_root(settings.dfp_path, detected, packs_home)
    device = settings.device or (detected.device if detected else "")
    if not device:
        device = detect_device_from_pack(pack_root)

    device_lower = normalize_device(device)
    token = extract_device_token(device_lower) if device_lower else ""
    dev_lib_name = parse_dev_lib_name(pack_root, device_lower)

    files: list[tuple[str, Path]] = []
    header_path = resolve_header_path(pack_root, dev_lib_name, token)
    if header_path:
        files.append(("header", header_path))
    inc_path = resolve_inc_path(pack_root, dev_lib_name, token)
    if inc_path:
        files.append(("inc", inc_path))
    atdf_path = resolve_atdf_path(pack_root, device, device_lower, token)
    if atdf_path:
        files.append(("atdf", atdf_path))

    logger.info(
        f"Alvo resolvido: pack={pack_root or '<nenhum>'} device={device or '<nenhum>'} "
        f"arquivos={len(files)}"
    )

    return ResolvedTarget(
        pack_root=pack_root,
        device=device,
        device_lower=device_lower,
        token=token,
        dev_lib_name=dev_lib_name,
        files=files,
        detected_project_file=detected.project_file if detected else None,
    )

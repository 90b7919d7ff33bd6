"""
conftest.py - Fixtures compartilhadas

Monta um diretório de packs no formato ~/.mchp_packs com um DFP mínimo
para o ATmega328P (atdf, avrasm/inc, include/avr e device-specs).
"""

from __future__ import annotations

from pathlib import Path

import pytest

HEADER_TEXT = """\
#ifndef _AVR_IOM328P_H_
#define _AVR_IOM328P_H_ 1
#define PORTB _SFR_IO8(0x05)
#define PORTB5 5
#define DDRB _SFR_IO8(0x04)
"""

INC_TEXT = """\
; ***** I/O REGISTER DEFINITIONS *****
.equ PORTB = 0x05
.equ DDRB = 0x04
.equ RAMEND = 0x08ff
"""

ATDF_TEXT = """\
<module name="PORT" caption="I/O Port">
  <register-group name="PORTB" caption="I/O Port">
    <register name="PORTB" offset="0x25" size="1"/>
    <bitfield name="PORTB5" mask="0x20"/>
  </register-group>
  <module name="port"/>
</module>
"""


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def make_pack(packs_home: Path, pack_name: str = "ATmega_DFP", version: str = "3.1.264") -> Path:
    """Cria um DFP mínimo e retorna a raiz da versão."""
    root = packs_home / "Microchip" / pack_name / version
    write(root / "atdf" / "ATmega328P.atdf", ATDF_TEXT)
    write(root / "atdf" / "ATmega328PB.atdf", "<module/>\n")
    write(root / "avrasm" / "inc" / "m328Pdef.inc", INC_TEXT)
    write(root / "avrasm" / "inc" / "m328PBdef.inc", ".equ PORTE = 0x0e\n")
    write(root / "include" / "avr" / "iom328p.h", HEADER_TEXT)
    write(root / "include" / "avr" / "iom328pb.h", "#define PORTE _SFR_IO8(0x0E)\n")
    write(
        root / "gcc" / "dev" / "atmega328p" / "device-specs" / "specs-atmega328p",
        "*cpp:\n-D__AVR_ATmega328P__ -D__AVR_DEVICE_NAME__=atmega328p "
        "-D__AVR_DEV_LIB_NAME__=m328p\n",
    )
    return root


@pytest.fixture
def packs_home(tmp_path) -> Path:
    home = tmp_path / "mchp_packs"
    make_pack(home)
    return home


@pytest.fixture
def pack_root(packs_home) -> Path:
    return packs_home / "Microchip" / "ATmega_DFP" / "3.1.264"

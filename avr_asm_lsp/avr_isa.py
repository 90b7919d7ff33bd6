"""
avr_isa.py - Tabelas do conjunto de instruções AVR

Propósito:
    Mnemônicos, diretivas do avrasm2 e nomes de registradores usados pelo
    completion (posição de mnemônico e de operando).
"""

from __future__ import annotations

AVR_INSTRUCTION_MNEMONICS = (
    "adc", "add", "adiw", "and", "andi", "asr",
    "bclr", "bld", "brbc", "brbs", "brcc", "brcs", "break", "breq", "brge",
    "brhc", "brhs", "brid", "brie", "brlo", "brlt", "brmi", "brne", "brpl",
    "brsh", "brtc", "brts", "brvc", "brvs", "bset", "bst",
    "call", "cbi", "cbr", "clc", "clh", "cli", "cln", "clr", "cls", "clt",
    "clv", "clz", "com", "cp", "cpc", "cpi", "cpse",
    "dec", "des",
    "eicall", "eijmp", "elpm", "eor",
    "fmul", "fmuls", "fmulsu",
    "icall", "ijmp", "in", "inc",
    "jmp",
    "lac", "las", "lat", "ld", "ldd", "ldi", "lds", "lpm", "lsl", "lsr",
    "mov", "movw", "mul", "muls", "mulsu",
    "neg", "nop",
    "or", "ori", "out",
    "pop", "push",
    "rcall", "ret", "reti", "rjmp", "rol", "ror",
    "sbc", "sbci", "sbi", "sbic", "sbis", "sbiw", "sbr", "sbrc", "sbrs",
    "sec", "seh", "sei", "sen", "ser", "ses", "set", "sev", "sez", "sleep",
    "spm", "st", "std", "sts", "sub", "subi", "swap",
    "tst",
    "wdr",
    "xch",
)

# Mnemônicos sem operandos: completion insere sem espaço final
AVR_NO_OPERAND_MNEMONICS = frozenset({
    "break", "clc", "clh", "cli", "cln", "cls", "clt", "clv", "clz",
    "eicall", "eijmp", "icall", "ijmp", "nop", "ret", "reti",
    "sec", "seh", "sei", "sen", "ses", "set", "sev", "sez",
    "sleep", "spm", "wdr",
})

AVR_DIRECTIVES = (
    ".byte", ".cseg", ".csegsize", ".db", ".dd", ".def", ".device", ".dq",
    ".dseg", ".dw", ".elif", ".else", ".endif", ".endm", ".endmacro", ".equ",
    ".error", ".eseg", ".exit", ".if", ".ifdef", ".ifndef", ".include",
    ".list", ".listmac", ".macro", ".message", ".nolist", ".nooverlap",
    ".org", ".overlap", ".set", ".undef", ".warning",
)

AVR_NO_OPERAND_DIRECTIVES = frozenset({
    ".cseg", ".dseg", ".else", ".endif", ".endm", ".endmacro", ".eseg",
    ".exit", ".list", ".listmac", ".nolist", ".nooverlap", ".overlap",
})

AVR_REGISTER_NAMES = tuple(f"r{index}" for index in range(32)) + (
    "x", "y", "z", "xl", "xh", "yl", "yh", "zl", "zh",
)

_INSTRUCTION_SET = frozenset(AVR_INSTRUCTION_MNEMONICS)


def is_instruction(word: str) -> bool:
    return word.lower() in _INSTRUCTION_SET


def takes_operands(mnemonic: str) -> bool:
    """Verifica se o mnemônico (instrução ou diretiva) recebe operandos."""
    lowered = mnemonic.lower()
    if lowered.startswith("."):
        return lowered not in AVR_NO_OPERAND_DIRECTIVES
    return lowered not in AVR_NO_OPERAND_MNEMONICS

"""Keyboard input parsing for the terminal host.

Raw input is split into complete sequences with :func:`split_sequences`
and each sequence is mapped to a key identifier with :func:`parse_key`.
Identifiers use lower-case names with ``+``-joined modifiers, e.g. ``"q"``,
``"enter"``, ``"escape"``, ``"ctrl+c"``, ``"shift+tab"``, ``"pageDown"``.
"""

from __future__ import annotations

ESC = "\x1b"

# Legacy escape sequences -> key names
LEGACY_KEY_SEQUENCES: dict[str, str] = {
    "\x1b[A": "up",
    "\x1b[B": "down",
    "\x1b[C": "right",
    "\x1b[D": "left",
    "\x1b[H": "home",
    "\x1b[F": "end",
    "\x1bOA": "up",
    "\x1bOB": "down",
    "\x1bOC": "right",
    "\x1bOD": "left",
    "\x1bOH": "home",
    "\x1bOF": "end",
    "\x1b[2~": "insert",
    "\x1b[3~": "delete",
    "\x1b[5~": "pageUp",
    "\x1b[6~": "pageDown",
    "\x1b[1~": "home",
    "\x1b[4~": "end",
    "\x1bOP": "f1",
    "\x1bOQ": "f2",
    "\x1bOR": "f3",
    "\x1bOS": "f4",
}

LEGACY_SHIFT_SEQUENCES: dict[str, str] = {
    "\x1b[1;2A": "up",
    "\x1b[1;2B": "down",
    "\x1b[5;2~": "pageUp",
    "\x1b[6;2~": "pageDown",
    "\x1b[Z": "tab",
}

LEGACY_CTRL_SEQUENCES: dict[str, str] = {
    "\x1b[1;5A": "up",
    "\x1b[1;5B": "down",
    "\x1b[1;5H": "home",
    "\x1b[1;5F": "end",
}


# ---------------------------------------------------------------------------
# Sequence splitting
# ---------------------------------------------------------------------------


def _is_complete_sequence(data: str) -> bool:
    """Whether *data* (starting with ESC) is a complete escape sequence."""
    if len(data) == 1:
        return False
    after_esc = data[1:]
    if after_esc.startswith("["):
        if len(data) < 3:
            return False
        return 0x40 <= ord(data[-1]) <= 0x7E
    if after_esc.startswith("O"):
        return len(after_esc) >= 2
    # meta key: ESC followed by a single character
    return True


def split_sequences(data: str) -> list[str]:
    """Split one read's worth of input into key sequences.

    A trailing lone ESC is the escape key; an unterminated CSI sequence at
    the end of the read is returned as-is and will not parse.
    """
    sequences: list[str] = []
    pos = 0
    while pos < len(data):
        if data[pos] != ESC:
            sequences.append(data[pos])
            pos += 1
            continue
        end = pos + 1
        while end <= len(data) and not _is_complete_sequence(data[pos:end]):
            end += 1
        if end > len(data):
            sequences.append(data[pos:])
            break
        sequences.append(data[pos:end])
        pos = end
    return sequences


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse_key(data: str) -> str | None:
    """Parse one raw input sequence and return the key identifier, or ``None``."""
    if not data:
        return None

    for seq_dict, mod_prefix in [
        (LEGACY_CTRL_SEQUENCES, "ctrl+"),
        (LEGACY_SHIFT_SEQUENCES, "shift+"),
        (LEGACY_KEY_SEQUENCES, ""),
    ]:
        if data in seq_dict:
            return mod_prefix + seq_dict[data]

    # --- Simple single-byte keys ---
    if data == ESC:
        return "escape"
    if data == "\r" or data == "\n":
        return "enter"
    if data == "\t":
        return "tab"
    if data == " ":
        return "space"
    if data == "\x7f" or data == "\x08":
        return "backspace"

    # --- Ctrl + letter (0x01 - 0x1a) ---
    if len(data) == 1 and 1 <= ord(data) <= 26:
        return "ctrl+" + chr(ord(data) + ord("a") - 1)

    # --- Alt + key (ESC prefix) ---
    if len(data) == 2 and data[0] == ESC:
        ch = data[1]
        if ch == ESC:
            return "alt+escape"
        if ch == "\r" or ch == "\n":
            return "alt+enter"
        if ch.isprintable():
            return "alt+" + ch.lower()

    # --- Plain printable character ---
    if len(data) == 1 and data.isprintable():
        return data

    return None

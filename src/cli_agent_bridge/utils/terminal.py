"""Terminal output cleanup for pane capture mode."""

import re

# OSC sequences (window titles etc): ESC ] ... BEL or ESC \
OSC_PATTERN = r"\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)"
CSI_PATTERN = r"\x1b\[[\x20-\x3f]*[\x40-\x7e]"
ESCAPE_PATTERN = r"\x1b[^\[\x1b]?"
CONTROL_CHAR_PATTERN = r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]"

SPINNER_CHARS = "✻✳✶✢·✽⠐⠑⠒⠓⠔⠕⠖⠗⠘⠙⠚⠛⠜⠝⠞⠟⠠⠡⠢⠣⠤⠥⠦⠧⠨⠩⠪⠫⠬⠭⠮⠯⠰⠱⠲⠳⠴⠵⠶⠷⠸⠹⠺⠻⠼⠽⠾⠿"
SPINNER_STATUS_PATTERN = rf"^[{SPINNER_CHARS}]\s*(Whirring|Thinking|Working).*$"
BARE_SPINNER_PATTERN = rf"^[{SPINNER_CHARS}\s]*$"
EMPTY_PROMPT_PATTERN = r"^❯\s*$"
STATUS_BAR_PATTERN = r"⏵⏵\s*bypass\s*permissions"
SEPARATOR_PATTERN = r"^[─━\-]{5,}$"
UI_HINT_PATTERN = r"esc\s+to\s+interrupt|shift\+tab\s+to\s+cycle|ctrl\+t\s+to\s+hide"


def _is_chrome(line: str) -> bool:
    """Whether a stripped line is agent UI chrome rather than response text."""
    return bool(
        re.match(SPINNER_STATUS_PATTERN, line, re.IGNORECASE)
        or re.match(BARE_SPINNER_PATTERN, line)
        or re.match(EMPTY_PROMPT_PATTERN, line)
        or re.search(STATUS_BAR_PATTERN, line, re.IGNORECASE)
        or re.match(SEPARATOR_PATTERN, line)
        or re.search(UI_HINT_PATTERN, line, re.IGNORECASE)
    )


def clean_terminal_output(raw: str) -> str:
    """Strip escape sequences and TUI artifacts from raw pane output."""
    text = re.sub(OSC_PATTERN, "", raw)
    text = re.sub(CSI_PATTERN, "", text)
    text = re.sub(ESCAPE_PATTERN, "", text)
    text = re.sub(CONTROL_CHAR_PATTERN, "", text)

    lines = [
        line for line in text.split("\n") if not line.strip() or not _is_chrome(line.strip())
    ]
    return re.sub(r"\n{3,}", "\n\n", "\n".join(lines)).strip()

"""Morse code extraction and decoding.

Pure functions, no side effects. Given prompt text they:

  1. find maximal runs of dots, dashes and whitespace (and, in a second pass,
     ``/`` and ``|`` used as separators) at least ``min_morse_length`` long;
  2. keep only runs where dots+dashes make up more than 70% of the
     non-whitespace characters, with ``/`` and ``|`` counted as whitespace;
  3. decode each run: 2+ whitespace separates words, single whitespace
     separates letters, unknown letters become ``?``;
  4. re-insert spaces around known words when the whole run decoded to one
     long token;
  5. cap decoded output at ``max_decode_length`` and drop decodings with fewer
     than 3 real characters.

The 70% ratio trades recall for precision: sparse or noisy encodings are
missed, punctuation-heavy prose is not flagged.

IMPORT RULES:
  - ``import re2`` ONLY — ``import re`` is PROHIBITED in app scanner modules.
"""

from __future__ import annotations

import functools
from dataclasses import dataclass
from typing import Any, Optional

import re2  # google-re2 — NOT stdlib re

from promptwall.constants import (
    DEFAULT_MAX_DECODE_LENGTH,
    DEFAULT_MIN_MORSE_LENGTH,
    MIN_DECODED_CHARS,
    MORSE_PLACEHOLDER,
    MORSE_RATIO_THRESHOLD,
    WORD_BOUNDARY_MIN_LENGTH,
)

MORSE_CODE_MAP: dict[str, str] = {
    ".-": "A", "-...": "B", "-.-.": "C", "-..": "D", ".": "E",
    "..-.": "F", "--.": "G", "....": "H", "..": "I", ".---": "J",
    "-.-": "K", ".-..": "L", "--": "M", "-.": "N", "---": "O",
    ".--.": "P", "--.-": "Q", ".-.": "R", "...": "S", "-": "T",
    "..-": "U", "...-": "V", ".--": "W", "-..-": "X", "-.--": "Y",
    "--..": "Z",
    ".----": "1", "..---": "2", "...--": "3", "....-": "4", ".....": "5",
    "-....": "6", "--...": "7", "---..": "8", "----.": "9", "-----": "0",
    "--..--": ",", ".-.-.-": ".", "..--..": "?", "-.-.--": "!", "-....-": "-",
    "-..-.": "/", ".--.-.": "@", "---...": ":", "-.-..": ";", "-...-": "=",
    ".-.-.": "+", "-.--.": "(", "-.--.-": ")", ".-..-.": "\"", "...-..-": "$",
    "..--.-": "_",
}

# High-signal words used to re-segment a run that decoded to one long token.
# Longest first so that e.g. PROMPTS wins over PROMPT at the same offset.
BOUNDARY_WORDS: tuple[str, ...] = tuple(sorted(
    {
        "IGNORE", "ALL", "PREVIOUS", "ABOVE", "INSTRUCTIONS", "FORGET", "EVERYTHING",
        "JAILBREAK", "MODE", "DEVELOPER", "GOD", "ADMIN", "SHOW", "REVEAL", "YOUR",
        "SYSTEM", "PROMPT", "PROMPTS", "RULES", "PRETEND", "ROLEPLAY",
    },
    key=lambda w: (-len(w), w),
))

# Canonical separators in a normalised sequence.
LETTER_GAP = " "
WORD_GAP = "   "

# re2 rejects counted repetition above 1000; longer minimums are enforced in Python.
_RE2_MAX_REPEAT = 1000

_WORD_GAP_RE = re2.compile(r'\s{2,}')
_BOUNDARY_RE = re2.compile("(" + "|".join(re2.escape(w) for w in BOUNDARY_WORDS) + ")")
_SEPARATOR_TABLE = str.maketrans({"/": " ", "|": " "})


@dataclass(frozen=True)
class MorseCandidate:
    """A morse-looking run found in a prompt.

    Fields:
        sequence: The run normalised to single spaces between letters and
                  three spaces between words (``/`` and ``|`` already mapped).
        position: Character offset of the run's first non-whitespace
                  character in the prompt.
    """

    sequence: str
    position: int


@functools.lru_cache(maxsize=16)
def _run_patterns(min_morse_length: int) -> tuple[Any, Any]:
    repeat = max(1, min(min_morse_length, _RE2_MAX_REPEAT))
    return (
        re2.compile(r'[.\-\s]{%d,}' % repeat),
        re2.compile(r'[.\-/|\s]{%d,}' % repeat),
    )


def _split_on(regex: Any, text: str) -> list[str]:
    parts: list[str] = []
    start = 0
    for m in regex.finditer(text):
        parts.append(text[start:m.start()])
        start = m.end()
    parts.append(text[start:])
    return parts


def looks_like_morse(run: str) -> bool:
    """True when dots+dashes exceed 70% of the run's non-whitespace characters."""
    non_ws = [c for c in run if not c.isspace()]
    if not non_ws:
        return False
    dots_and_dashes = sum(1 for c in non_ws if c in ".-")
    return dots_and_dashes / len(non_ws) > MORSE_RATIO_THRESHOLD


def normalize_sequence(run: str) -> str:
    """Map ``/`` and ``|`` to whitespace and canonicalise letter/word gaps."""
    words = _split_on(_WORD_GAP_RE, run.translate(_SEPARATOR_TABLE).strip())
    return WORD_GAP.join(LETTER_GAP.join(w.split()) for w in words if w.split())


def extract_morse_sequences(
    text: Optional[str],
    min_morse_length: int = DEFAULT_MIN_MORSE_LENGTH,
) -> list[MorseCandidate]:
    """Find morse-looking runs in ``text``.

    Two passes: plain ``[.-\\s]`` runs, then runs that may also contain ``/``
    and ``|``. Candidates are de-duplicated on their normalised sequence; the
    first occurrence wins.
    """
    if not text:
        return []

    candidates: list[MorseCandidate] = []
    seen: set[str] = set()
    for regex in _run_patterns(min_morse_length):
        for m in regex.finditer(text):
            run = m.group(0)
            # "/" and "|" are gaps, not symbols, for the ratio
            if len(run) < min_morse_length or not looks_like_morse(run.translate(_SEPARATOR_TABLE)):
                continue
            sequence = normalize_sequence(run)
            if not sequence or sequence in seen:
                continue
            seen.add(sequence)
            leading = len(run) - len(run.lstrip())
            candidates.append(MorseCandidate(sequence=sequence, position=m.start() + leading))
    return candidates


def decode_letter(token: str) -> str:
    return MORSE_CODE_MAP.get(token, MORSE_PLACEHOLDER)


def add_word_boundaries(text: str) -> str:
    """Best-effort re-segmentation of a token that lost its word gaps.

    Surrounds every known word with spaces (leftmost, longest first) and
    collapses whitespace. Characters outside known words stay glued together.
    """
    pieces: list[str] = []
    start = 0
    for m in _BOUNDARY_RE.finditer(text):
        pieces.append(text[start:m.start()])
        pieces.append(" " + m.group(0) + " ")
        start = m.end()
    pieces.append(text[start:])
    return " ".join("".join(pieces).split())


def decode_morse(
    sequence: Optional[str],
    max_decode_length: int = DEFAULT_MAX_DECODE_LENGTH,
) -> Optional[str]:
    """Decode a morse sequence to uppercase text.

    Returns None when the sequence is empty or fewer than 3 real characters
    (placeholders and whitespace excluded) were recovered. The returned text
    is never longer than ``max_decode_length``.
    """
    if not sequence or not sequence.strip() or max_decode_length <= 0:
        return None

    words: list[str] = []
    used = 0
    for word in _split_on(_WORD_GAP_RE, sequence.strip()):
        letters = word.split()
        if not letters:
            continue
        gap = 1 if words else 0
        room = max_decode_length - used - gap
        if room <= 0:
            break
        decoded = "".join(decode_letter(letter) for letter in letters[:room])
        words.append(decoded)
        used += gap + len(decoded)
        if len(letters) > room:
            break

    if len(words) == 1 and len(words[0]) > WORD_BOUNDARY_MIN_LENGTH:
        text = add_word_boundaries(words[0])
    else:
        text = " ".join(words)
    text = text[:max_decode_length].strip()

    real_chars = sum(1 for c in text if c != MORSE_PLACEHOLDER and not c.isspace())
    if real_chars < MIN_DECODED_CHARS:
        return None
    return text


def decode_candidates(
    text: Optional[str],
    min_morse_length: int = DEFAULT_MIN_MORSE_LENGTH,
    max_decode_length: int = DEFAULT_MAX_DECODE_LENGTH,
) -> list[tuple[MorseCandidate, str]]:
    """Extract and decode in one step; undecodable candidates are dropped."""
    decoded: list[tuple[MorseCandidate, str]] = []
    for candidate in extract_morse_sequences(text, min_morse_length):
        plain = decode_morse(candidate.sequence, max_decode_length)
        if plain is not None:
            decoded.append((candidate, plain))
    return decoded

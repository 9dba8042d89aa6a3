"""Shared calibration constants: the reference phrases and retry/validation limits."""

from __future__ import annotations

# Read aloud in this order on every calibration run, so profiles stay comparable.
# Together they cover digits, greetings, numbers with units, edit commands and
# common consonant clusters.
CALIBRATION_PHRASES: tuple[str, ...] = (
    "One two three four five. Six seven eight nine ten.",
    "Hello everyone, it's me again. The weather is lovely today.",
    "Where can I buy two shovels for about three hundred dollars?",
    "Delete that, attach the file, and erase the last paragraph.",
    "I am speaking clearly and slowly in my normal voice.",
    "The cat meows, the dog barks, and the computer runs quickly.",
)

PHRASE_COUNT = len(CALIBRATION_PHRASES)

# Separator between phrase transcripts in the profile's context string
CONTEXT_SEPARATOR = " "

# Recordings shorter than this are rejected before transcription
MIN_RECORDING_SEC = 0.5
# Transcripts shorter than this (after strip) are rejected and the phrase re-offered.
# 1 means "must not be empty".
MIN_TEXT_CHARS_DEFAULT = 1
MIN_TEXT_CHARS_MAX = 40

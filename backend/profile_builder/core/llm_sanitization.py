"""Sanitization of document text before it is embedded in LLM prompts.

Security: CV text is attacker-controlled. Patterns used for prompt
injection are neutralized before the text is placed inside the
<cv_text> delimiters of the extraction prompt.

Accents are kept (names like "José" must survive extraction), so only
invisible characters and structural markers are touched.
"""

import re
import unicodedata

# Invisible characters that can split a keyword to slip past the filters
_INVISIBLE_PATTERN = re.compile(
    "["
    "\u00ad"  # Soft hyphen
    "\u200b-\u200f"  # Zero-width space/joiners, LRM, RLM
    "\u202a-\u202e"  # BiDi embedding controls
    "\u2060-\u2064"  # Word joiner, invisible operators
    "\u2066-\u2069"  # BiDi isolates
    "\ufeff"  # BOM
    "]"
)

# Control characters except tab, newline and carriage return
_CONTROL_CHAR_PATTERN = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")

_REPLACEMENT_TAG = "[TAG]"
_REPLACEMENT_FILTERED = "[FILTERED]"

_INJECTION_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    # Our own delimiter, so the text cannot close the block early
    (re.compile(r"<\s*/?\s*cv_text(?:\s[^>]*)?\s*>", re.IGNORECASE), _REPLACEMENT_TAG),
    # Role tags, XML and ChatML style
    (re.compile(r"<\s*/?\s*(?:system|user|assistant)\s*>", re.IGNORECASE), _REPLACEMENT_TAG),
    (re.compile(r"<\|(?:system|user|assistant|im_start|im_end)\|>", re.IGNORECASE), _REPLACEMENT_TAG),
    # Role prefixes at line start
    (
        re.compile(r"^\s*(?:SYSTEM|Human|Assistant)\s*:", re.IGNORECASE | re.MULTILINE),
        _REPLACEMENT_FILTERED + ":",
    ),
    # Instruction overrides
    (
        re.compile(r"ignore\s+(?:all\s+)?previous\s+instructions?", re.IGNORECASE),
        _REPLACEMENT_FILTERED,
    ),
    (re.compile(r"disregard\s+(?:all\s+)?(?:prior|previous)", re.IGNORECASE), _REPLACEMENT_FILTERED),
    (re.compile(r"\[/?INST\]", re.IGNORECASE), _REPLACEMENT_FILTERED),
]


def sanitize_document_text(text: str) -> str:
    """Neutralize prompt injection markers in extracted document text.

    This is defense-in-depth, not a guarantee: the prompt also relies on
    clear delimiters and JSON-only output.

    Args:
        text: Text extracted from an uploaded document.

    Returns:
        Text with invisible characters removed and injection markers replaced.
    """
    if not text:
        return text

    # NFKC folds fullwidth/styled variants (e.g., Ｓ → S) so the filters see them
    result = unicodedata.normalize("NFKC", text)
    result = _INVISIBLE_PATTERN.sub("", result)
    result = _CONTROL_CHAR_PATTERN.sub("", result)
    for pattern, replacement in _INJECTION_PATTERNS:
        result = pattern.sub(replacement, result)
    return result

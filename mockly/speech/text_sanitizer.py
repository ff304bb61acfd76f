"""
Text sanitization for speech synthesis and display.

Each pipeline is an ordered list of (pattern, replacement) rules applied in
sequence. Rules are shared between pipelines, but every pipeline lists its
own steps so a change to one never alters another.
"""

import re

Rule = tuple[re.Pattern, str]

# Double markers must go before single ones or `*x*` eats half of `**x**`.
EMPHASIS_RULES: list[Rule] = [
    (re.compile(r"\*\*([^*]+)\*\*"), r"\1"),
    (re.compile(r"__([^_]+)__"), r"\1"),
    (re.compile(r"~~([^~]+)~~"), r"\1"),
    (re.compile(r"\*([^*]+)\*"), r"\1"),
    (re.compile(r"_([^_]+)_"), r"\1"),
    (re.compile(r"~([^~]+)~"), r"\1"),
]

CODE_BLOCK_RULE: Rule = (re.compile(r"```[\s\S]*?```"), "")
INLINE_CODE_RULE: Rule = (re.compile(r"`([^`]+)`"), r"\1")

HEADING_RULE: Rule = (re.compile(r"^[ \t]*#{1,6}\s+", re.MULTILINE), "")
LIST_MARKER_RULES: list[Rule] = [
    (re.compile(r"^\s*[-*+]\s+", re.MULTILINE), ""),
    (re.compile(r"^\s*\d+\.\s+", re.MULTILINE), ""),
]
BLOCKQUOTE_RULE: Rule = (re.compile(r"^[ \t]*>\s*", re.MULTILINE), "")
TABLE_RULES: list[Rule] = [
    (re.compile(r"\|"), " "),
    (re.compile(r"-{3,}"), " "),
    (re.compile(r"={3,}"), " "),
]

URL_RULE: Rule = (re.compile(r"\bhttps?://\S+"), "link")
EMAIL_RULE: Rule = (re.compile(r"\b[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}\b"), "email")
PHONE_RULE: Rule = (re.compile(r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b"), "phone number")

WHITESPACE_RULE: Rule = (re.compile(r"\s+"), " ")
PUNCTUATION_RULES: list[Rule] = [
    (re.compile(r"\s*([.!?]+)\s*"), r"\1 "),
    (re.compile(r"\s*([,;:])\s*"), r"\1 "),
]
PARENTHESIS_RULES: list[Rule] = [
    (re.compile(r"\s*\("), " ("),
    (re.compile(r"\)\s*"), ") "),
]
REPEATED_PUNCTUATION_RULES: list[Rule] = [
    (re.compile(r"!{2,}"), "!"),
    (re.compile(r"\?{2,}"), "?"),
    (re.compile(r"\.{3,}"), "..."),
]

# Token substitution runs before punctuation spacing, which would split
# "example.com" or "555.123.4567" apart.
TTS_PIPELINE: list[Rule] = [
    CODE_BLOCK_RULE,
    *EMPHASIS_RULES,
    INLINE_CODE_RULE,
    HEADING_RULE,
    *LIST_MARKER_RULES,
    BLOCKQUOTE_RULE,
    *TABLE_RULES,
    URL_RULE,
    EMAIL_RULE,
    PHONE_RULE,
    WHITESPACE_RULE,
    *PUNCTUATION_RULES,
    *PARENTHESIS_RULES,
    *REPEATED_PUNCTUATION_RULES,
]

DISPLAY_PIPELINE: list[Rule] = [
    *EMPHASIS_RULES,
    INLINE_CODE_RULE,
    WHITESPACE_RULE,
]

SCENARIO_PIPELINE: list[Rule] = [
    *EMPHASIS_RULES,
    INLINE_CODE_RULE,
    *LIST_MARKER_RULES,
    URL_RULE,
    EMAIL_RULE,
    WHITESPACE_RULE,
    *PUNCTUATION_RULES,
]


def apply_rules(text: str, rules: list[Rule]) -> str:
    """Apply each substitution rule in order, then trim."""
    for pattern, replacement in rules:
        text = pattern.sub(replacement, text)
    return text.strip()


def sanitize_text_for_tts(text: str) -> str:
    """
    Clean text before it is sent to a speech synthesizer.

    Drops fenced code blocks, unwraps markdown, strips headings, list,
    quote and table markup, replaces URLs, e-mail addresses and phone
    numbers with spoken placeholders, and normalizes spacing and
    punctuation.
    """
    if not text:
        return ""
    return apply_rules(text, TTS_PIPELINE)


def sanitize_text_for_display(text: str) -> str:
    """Light cleanup for on-screen text: unwrap markdown and collapse whitespace."""
    if not text:
        return ""
    return apply_rules(text, DISPLAY_PIPELINE)


def sanitize_scenario_text(text: str) -> str:
    """Cleanup for short conversational scenario prompts."""
    if not text:
        return ""
    return apply_rules(text, SCENARIO_PIPELINE)

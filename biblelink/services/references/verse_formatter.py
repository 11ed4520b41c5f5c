# biblelink/services/references/verse_formatter.py
"""
Processing rules for verse text.

A translation carries an ordered list of regex rules that turn raw verse
text into display text, e.g. "\\[(\\w+)\\]" -> "<em>$1</em>" to italicize
words a translator added. Rules run one after another, each on the output
of the previous one.

Replacement templates use $1..$99 for capture groups, $& for the whole
match and $$ for a literal dollar sign. Rules marked escape HTML-escape the
substituted values, never the template itself.

A rule whose pattern does not compile is skipped and reported; formatting
always returns a string.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)


DIGITS = "0123456789"

HTML_ESCAPES = str.maketrans({
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    "[": "&#91;",
    "]": "&#93;",
})


class InvalidPatternWarning(UserWarning):
    """A processing rule's pattern failed to compile and was skipped."""

    def __init__(self, pattern: str, translation: str = "", reason: str = ""):
        self.pattern = pattern
        self.translation = translation
        self.reason = reason
        super().__init__(
            f"Invalid regex in processing rule for {translation or '<unknown>'}: "
            f"{pattern} ({reason})"
        )


@dataclass(frozen=True)
class ProcessingRule:
    """
    One regex substitution rule.

    Attributes:
        pattern: Regular expression source
        replacement: Template with $1.., $& and $$ tokens
        escape_captures: HTML-escape substituted values
    """
    pattern: str
    replacement: str
    escape_captures: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "ProcessingRule":
        """Build from the stored form: {"regex", "formatting", "escape"}."""
        return cls(
            pattern=data.get("regex", ""),
            replacement=data.get("formatting", ""),
            escape_captures=bool(data.get("escape", False)),
        )

    def to_dict(self) -> dict:
        return {
            "regex": self.pattern,
            "formatting": self.replacement,
            "escape": self.escape_captures,
        }


@dataclass
class FormattedVerse:
    """Verse text after all rules ran, plus any skipped-rule warnings."""
    text: str
    warnings: List[InvalidPatternWarning] = field(default_factory=list)


def escape_html(value: str) -> str:
    """Escape &, <, >, [ and ] as HTML entities."""
    return value.translate(HTML_ESCAPES)


def expand_template(template: str, match: re.Match, escape: bool = False) -> str:
    """
    Substitute $-tokens in a replacement template from one match.

    Args:
        template: Replacement template
        match: The regex match supplying group values
        escape: HTML-escape every substituted value

    Returns:
        The expanded replacement text
    """
    group_count = match.re.groups
    out = []
    i = 0
    n = len(template)

    while i < n:
        ch = template[i]
        if ch != "$" or i + 1 == n:
            out.append(ch)
            i += 1
            continue

        nxt = template[i + 1]
        if nxt == "$":
            out.append("$")
            i += 2
            continue

        if nxt == "&":
            value = match.group(0)
            out.append(escape_html(value) if escape else value)
            i += 2
            continue

        if nxt in DIGITS:
            # Prefer a two-digit group when it exists, as "$12" with 12 groups
            two = template[i + 1:i + 3]
            if len(two) == 2 and two[1] in DIGITS and 1 <= int(two) <= group_count:
                index, width = int(two), 2
            elif 1 <= int(nxt) <= group_count:
                index, width = int(nxt), 1
            else:
                out.append(ch)
                i += 1
                continue

            value = match.group(index) or ""
            out.append(escape_html(value) if escape else value)
            i += 1 + width
            continue

        out.append(ch)
        i += 1

    return "".join(out)


def compile_rule(rule: ProcessingRule) -> Tuple[Optional[re.Pattern], str]:
    """Compile a rule's pattern, returning (regex, "") or (None, reason)."""
    try:
        return re.compile(rule.pattern), ""
    except (re.error, TypeError) as e:
        return None, str(e)


def format_verse(
    text: str,
    rules: Iterable[ProcessingRule],
    translation: str = "",
) -> FormattedVerse:
    """
    Apply processing rules to verse text in order.

    Args:
        text: Raw verse text
        rules: Ordered processing rules
        translation: Translation abbreviation, used in warnings

    Returns:
        FormattedVerse with the final text and any warnings
    """
    result = FormattedVerse(text=text)

    for rule in rules or ():
        regex, reason = compile_rule(rule)
        if regex is None:
            warning = InvalidPatternWarning(rule.pattern, translation, reason)
            logger.warning(str(warning))
            result.warnings.append(warning)
            continue

        result.text = regex.sub(
            lambda m: expand_template(rule.replacement, m, rule.escape_captures),
            result.text,
        )

    return result


def apply_processing_rules(
    text: str,
    rules: Iterable[ProcessingRule],
    translation: str = "",
) -> str:
    """Apply processing rules and return only the text."""
    return format_verse(text, rules, translation).text

"""Legacy alias tokens and their translation to dynamic labels.

old queries named series with an alias like "{{metric}} {{InstanceId}}".
the api now evaluates dynamic label templates server-side, so we translate the
alias grammar into the label grammar once and forget about aliases after that.

the grammar is tiny: literal text, or {{ token }} with optional whitespace
inside the braces. tokens from a fixed table map to properties; anything else
is taken to be a dimension name.
"""

import re
from dataclasses import dataclass

_ALIAS_TOKEN = re.compile(r"\{\{\s*(.+?)\s*\}\}")

# alias token -> dynamic label placeholder
ALIAS_TOKEN_LABELS = {
    "metric": "${PROP('MetricName')}",
    "namespace": "${PROP('Namespace')}",
    "period": "${PROP('Period')}",
    "region": "${PROP('Region')}",
    "stat": "${PROP('Stat')}",
    "label": "${LABEL}",
}


@dataclass(frozen=True)
class AliasPart:
    """A lexed piece of an alias: literal text or a token name."""

    text: str
    is_token: bool = False


def tokenize_alias(alias: str) -> list[AliasPart]:
    """Split an alias into literal and token parts, in order."""
    parts: list[AliasPart] = []
    pos = 0
    for match in _ALIAS_TOKEN.finditer(alias):
        if match.start() > pos:
            parts.append(AliasPart(alias[pos : match.start()]))
        parts.append(AliasPart(match.group(1), is_token=True))
        pos = match.end()
    if pos < len(alias):
        parts.append(AliasPart(alias[pos:]))
    return parts


def token_to_label(token: str) -> str:
    """Dynamic label placeholder for one alias token.

    case-sensitive: {{Metric}} is a dimension called "Metric".
    """
    return ALIAS_TOKEN_LABELS.get(token, f"${{PROP('Dim.{token}')}}")


def alias_to_label(alias: str) -> str:
    """Translate a legacy alias into a dynamic label template."""
    return "".join(
        token_to_label(part.text) if part.is_token else part.text
        for part in tokenize_alias(alias)
    )

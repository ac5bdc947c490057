from common.settings import RewriteSettings
from common.utils import collapse_whitespace, truncate

REWRITE_INSTRUCTIONS = """
You rewrite news headlines into a neutral, factual, one-line headline.

Requirements
Present tense
Name the actor or subject, the action, and the place or time when known
Keep one concrete number or statistic if the source has one
No hype, puns, rhetorical questions, or marketing language
No hedging words such as "likely", "could" or "set to"
Do not invent facts; every number must appear in the source material
At most {max_chars} characters

Output ONLY the rewritten headline (no quotes, no prefix).
"""


def build_instructions(settings: RewriteSettings) -> str:
    return REWRITE_INSTRUCTIONS.format(max_chars=settings.prompt_max_chars).strip()


def build_prompt(
    title: str,
    dek: str | None,
    snippet: str | None,
    settings: RewriteSettings,
) -> str:
    """User message carrying the source material for one article."""
    lines = [f"Original title: {collapse_whitespace(title)}"]
    if dek and dek.strip():
        lines.append(f"Dek/summary: {truncate(dek, settings.max_dek_chars)}")
    if snippet:
        lines.append(f"Article excerpt: {snippet}")
    return "\n".join(lines)

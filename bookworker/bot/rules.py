from bookworker.profile.models import ReplacementRule


def parse_rules(text: str) -> list[ReplacementRule]:
    """Parse ``original,replacement`` lines.

    Each line is split at its first comma and both sides are trimmed. Lines
    without a comma or with an empty original are ignored.
    """
    rules: list[ReplacementRule] = []
    for line in text.splitlines():
        original, separator, replacement = line.partition(",")
        if not separator:
            continue
        original = original.strip()
        if not original:
            continue
        rules.append(ReplacementRule(original=original, replacement=replacement.strip()))
    return rules

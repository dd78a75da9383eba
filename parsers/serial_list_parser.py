"""
Serial list parser.

Turns text pasted by an operator (one serial per line, or separated by
commas, semicolons or spaces) into serial identifiers.
"""

from dataclasses import dataclass, field
import re
import structlog

logger = structlog.get_logger(__name__)

SEPARATORS = re.compile(r"[,;\s]+")


@dataclass
class ParsedSerialList:
    """Result of parsing a pasted serial list."""
    all: list[str] = field(default_factory=list)  # every token, input order
    unique: list[str] = field(default_factory=list)  # first occurrences
    duplicates: list[str] = field(default_factory=list)  # first-repeat order

    @property
    def is_empty(self) -> bool:
        """True if no serial survived tokenization."""
        return len(self.unique) == 0


def parse_serial_list(text: str) -> ParsedSerialList:
    """
    Tokenize raw serial input and detect repeated serials.

    Serials are compared exactly (case-sensitive). A serial is reported as a
    duplicate once, the first time it repeats.

    Examples:
        "A,A,B,A,C,B" -> unique ["A", "B", "C"], duplicates ["A", "B"]
        "  \\n " -> empty

    Args:
        text: Raw pasted text

    Returns:
        ParsedSerialList
    """
    tokens = [t.strip() for t in SEPARATORS.split(text or "")]
    tokens = [t for t in tokens if t]

    seen: set[str] = set()
    reported: set[str] = set()
    unique: list[str] = []
    duplicates: list[str] = []

    for token in tokens:
        if token not in seen:
            seen.add(token)
            unique.append(token)
        elif token not in reported:
            reported.add(token)
            duplicates.append(token)

    logger.debug(
        "serial_list_parsed",
        tokens=len(tokens),
        unique=len(unique),
        duplicates=len(duplicates)
    )

    return ParsedSerialList(all=tokens, unique=unique, duplicates=duplicates)

"""
Custom Rules Engine
====================

User-defined keyword and extension rules. Rules are evaluated before the
external classifier, so a matching rule always decides the category.
Storage of the rules belongs to the preferences document; the engine only
holds them in memory.
"""

import uuid
from typing import Optional, List, Iterable
from dataclasses import dataclass
from enum import Enum

from tidyfolder.config.categories import FileCategory, extension_of
from tidyfolder.utils.logging_config import get_logger

logger = get_logger(__name__)


class RuleType(Enum):
    """Types of pattern matching."""
    EXTENSION = "extension"  # Normalized extension equals pattern
    KEYWORD = "keyword"      # Base name contains pattern


@dataclass
class CustomRule:
    """A user-authored classification rule.

    Attributes:
        id: Unique identifier.
        type: Keyword or extension match.
        pattern: Text to look for.
        category: Category assigned when the rule matches.
    """
    id: str
    type: RuleType
    pattern: str
    category: FileCategory

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "type": self.type.value,
            "pattern": self.pattern,
            "category": self.category.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CustomRule":
        """Create from dictionary.

        Raises:
            ValueError: If the type or category is not recognised.
        """
        category = FileCategory.parse(data.get("category"))
        if category is None:
            raise ValueError(f"Unknown category: {data.get('category')!r}")
        return cls(
            id=str(data.get("id") or uuid.uuid4()),
            type=RuleType(data.get("type", "extension")),
            pattern=str(data.get("pattern", "")).strip(),
            category=category,
        )

    def matches(self, file_name: str, extension: Optional[str] = None) -> bool:
        """Check if a file matches this rule.

        Args:
            file_name: Base name of the file.
            extension: Normalized extension, derived from the name if omitted.
        """
        if not self.pattern:
            return False

        if self.type == RuleType.KEYWORD:
            return self.pattern.lower() in file_name.lower()

        if extension is None:
            extension = extension_of(file_name)
        return extension.lower() == self.pattern.lower().lstrip(".")


class RulesEngine:
    """Evaluates custom rules: every keyword rule first, then every
    extension rule, each group in declaration order. First match wins.
    """

    def __init__(self, rules: Optional[Iterable[CustomRule]] = None):
        self._rules: List[CustomRule] = list(rules or [])

    def evaluate(self, file_name: str, extension: Optional[str] = None) -> Optional[FileCategory]:
        """Return the category of the first matching rule, or None."""
        rule = self.match(file_name, extension)
        return rule.category if rule else None

    def match(self, file_name: str, extension: Optional[str] = None) -> Optional[CustomRule]:
        """Return the first rule that matches the file, or None."""
        for rule_type in (RuleType.KEYWORD, RuleType.EXTENSION):
            for rule in self._rules:
                if rule.type == rule_type and rule.matches(file_name, extension):
                    logger.debug(f"Rule matched: '{rule.pattern}' ({rule.type.value}) for {file_name}")
                    return rule
        return None

    def add_rule(
        self,
        rule_type: RuleType,
        pattern: str,
        category: FileCategory
    ) -> CustomRule:
        """Add a new custom rule.

        Raises:
            ValueError: If the pattern is blank.
        """
        pattern = pattern.strip()
        if not pattern:
            raise ValueError("Rule pattern must not be empty")

        rule = CustomRule(
            id=str(uuid.uuid4()),
            type=RuleType(rule_type),
            pattern=pattern,
            category=category,
        )
        self._rules.append(rule)
        logger.info(f"Added rule: {rule.type.value} '{pattern}' -> {category.value}")
        return rule

    def remove_rule(self, rule_id: str) -> bool:
        """Remove a rule by ID. Returns True if it existed."""
        for i, rule in enumerate(self._rules):
            if rule.id == rule_id:
                self._rules.pop(i)
                logger.info(f"Removed rule: '{rule.pattern}'")
                return True
        return False

    def get_rules(self) -> List[CustomRule]:
        """Get all rules in declaration order."""
        return self._rules.copy()

    def __len__(self) -> int:
        return len(self._rules)

"""
Preferences Document
====================

The user's rules and folder exclusions as one portable JSON document::

    {"version": "1.0", "customRules": [...], "excludedFolders": [...]}

The engine consumes these as plain in-memory inputs; this module only
reads and writes the document.
"""

import json
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import List, Optional, Any, Dict

from tidyfolder.classification.rules_engine import CustomRule, RulesEngine
from tidyfolder.config.settings import DEFAULT_EXCLUDED_FOLDERS
from tidyfolder.utils.exceptions import ConfigurationError
from tidyfolder.utils.logging_config import get_logger

logger = get_logger(__name__)

DOCUMENT_VERSION = "1.0"


@dataclass
class Preferences:
    """Rules and exclusions supplied to the walker and resolver.

    Attributes:
        custom_rules: Rules in declaration order.
        excluded_folders: Entry names never descended into.
    """
    custom_rules: List[CustomRule] = field(default_factory=list)
    excluded_folders: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDED_FOLDERS))

    def rules_engine(self) -> RulesEngine:
        """Build a rules engine over these rules."""
        return RulesEngine(self.custom_rules)

    def add_exclusion(self, name: str) -> None:
        """Exclude a folder name; blank names and repeats are ignored."""
        name = name.strip()
        if name and name not in self.excluded_folders:
            self.excluded_folders.append(name)

    def remove_exclusion(self, name: str) -> None:
        if name in self.excluded_folders:
            self.excluded_folders.remove(name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": DOCUMENT_VERSION,
            "customRules": [rule.to_dict() for rule in self.custom_rules],
            "excludedFolders": list(self.excluded_folders),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base: Optional["Preferences"] = None) -> "Preferences":
        """Create from a parsed document.

        Keys missing from the document keep the values of ``base`` (or the
        defaults), so a document may carry only rules or only exclusions.

        Raises:
            ConfigurationError: If the document is malformed.
        """
        if not isinstance(data, dict):
            raise ConfigurationError("Invalid config file.")

        base = base or cls()
        rules = base.custom_rules
        excluded = base.excluded_folders

        if data.get("customRules") is not None:
            raw_rules = data["customRules"]
            if not isinstance(raw_rules, list):
                raise ConfigurationError("Invalid config file.", config_key="customRules")
            try:
                rules = [CustomRule.from_dict(item) for item in raw_rules]
            except (ValueError, TypeError, AttributeError) as e:
                raise ConfigurationError("Invalid config file.", config_key="customRules", cause=e)

        if data.get("excludedFolders") is not None:
            raw_excluded = data["excludedFolders"]
            if not isinstance(raw_excluded, list):
                raise ConfigurationError("Invalid config file.", config_key="excludedFolders")
            excluded = [str(item) for item in raw_excluded]

        return cls(custom_rules=list(rules), excluded_folders=list(excluded))

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_json(cls, text: str, base: Optional["Preferences"] = None) -> "Preferences":
        """Parse a JSON document.

        Raises:
            ConfigurationError: If the text is not a valid document.
        """
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigurationError("Invalid config file.", cause=e)
        return cls.from_dict(data, base=base)

    def export(self, directory: Path, today: Optional[date] = None) -> Path:
        """Write ``tidy-config-<date>.json`` into a directory and return its path."""
        today = today or date.today()
        target = Path(directory) / f"tidy-config-{today.isoformat()}.json"
        self.save(target)
        return target

    def save(self, path: Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.to_json())
        logger.info(f"Saved preferences to {path}")

    @classmethod
    def load(cls, path: Path, base: Optional["Preferences"] = None) -> "Preferences":
        """Import a preferences document from disk.

        Raises:
            ConfigurationError: If the file is unreadable or malformed.
        """
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                text = f.read()
        except OSError as e:
            raise ConfigurationError(f"Cannot read preferences file: {path}", cause=e)

        preferences = cls.from_json(text, base=base)
        logger.info(
            f"Loaded {len(preferences.custom_rules)} rules and "
            f"{len(preferences.excluded_folders)} exclusions from {path}"
        )
        return preferences

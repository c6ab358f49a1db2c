"""
Configuration Management System
===============================

Provides dataclass-based configuration with YAML file loading support.
All settings have sensible defaults so a missing file is not an error.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Any, Dict
import yaml
import logging

from tidyfolder.utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDED_FOLDERS = ["node_modules", ".git", "tmp", ".DS_Store", "AppData"]

CONFLICT_STRATEGIES = ("skip", "rename", "overwrite")


@dataclass
class ScanConfig:
    """Directory walk configuration.

    Attributes:
        excluded_folders: Entry names skipped at any depth of the tree.
    """
    excluded_folders: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDED_FOLDERS))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScanConfig":
        """Create ScanConfig from dictionary."""
        if not data:
            return cls()
        excluded = data.get("excluded_folders")
        if excluded is None:
            return cls()
        if not isinstance(excluded, list):
            raise ConfigurationError(
                "excluded_folders must be a list of folder names",
                config_key="scan.excluded_folders"
            )
        return cls(excluded_folders=[str(name) for name in excluded])


@dataclass
class ClassificationConfig:
    """External classifier configuration.

    Attributes:
        enabled: Whether to call the LLM for files no rule matched.
        llm_model: Name of the Ollama model used for name classification.
        llm_host: Ollama server URL, None for the client default.
        temperature: LLM temperature (lower = more deterministic).
    """
    enabled: bool = True
    llm_model: str = "llama3"
    llm_host: Optional[str] = None
    temperature: float = 0.1

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClassificationConfig":
        """Create ClassificationConfig from dictionary."""
        if not data:
            return cls()
        return cls(
            enabled=bool(data.get("enabled", cls.enabled)),
            llm_model=data.get("llm_model", cls.llm_model),
            llm_host=data.get("llm_host", cls.llm_host),
            temperature=float(data.get("temperature", cls.temperature)),
        )


@dataclass
class OrganizationConfig:
    """Move, export and backup settings.

    Attributes:
        export_folder_name: Folder created inside an export destination.
        backup_prefix: Prefix of the timestamped backup folder.
        conflict_strategy: What to do when the destination name is taken
            (skip, rename or overwrite).
        undo_log_file: Where the CLI keeps the last organize pass.
    """
    export_folder_name: str = "Completed Download"
    backup_prefix: str = "Tidy_Backup_"
    conflict_strategy: str = "skip"
    undo_log_file: Path = field(default_factory=lambda: Path.home() / ".tidyfolder" / "last_undo.json")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OrganizationConfig":
        """Create OrganizationConfig from dictionary."""
        if not data:
            return cls()

        strategy = str(data.get("conflict_strategy", cls.conflict_strategy)).lower()
        if strategy not in CONFLICT_STRATEGIES:
            raise ConfigurationError(
                f"Unknown conflict strategy: {strategy}",
                config_key="organization.conflict_strategy"
            )

        undo_file = data.get("undo_log_file")
        return cls(
            export_folder_name=data.get("export_folder_name", cls.export_folder_name),
            backup_prefix=data.get("backup_prefix", cls.backup_prefix),
            conflict_strategy=strategy,
            undo_log_file=Path(undo_file).expanduser() if undo_file else cls().undo_log_file,
        )


@dataclass
class Config:
    """Main configuration container.

    Aggregates all configuration sections and provides loading from YAML.
    """
    scan: ScanConfig = field(default_factory=ScanConfig)
    classification: ClassificationConfig = field(default_factory=ClassificationConfig)
    organization: OrganizationConfig = field(default_factory=OrganizationConfig)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Config":
        """Load configuration from YAML file.

        Args:
            config_path: Path to the configuration file. If None, looks for
                        tidyfolder.yaml in the current directory.

        Returns:
            Config instance with loaded settings.

        Raises:
            yaml.YAMLError: If config file is not valid YAML.
            ConfigurationError: If a value is out of range.
        """
        implied = config_path is None
        if implied:
            config_path = Path("tidyfolder.yaml")
        config_path = Path(config_path)

        if not config_path.exists():
            log = logger.info if implied else logger.warning
            log(f"Config file not found at {config_path}, using defaults")
            return cls()

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}

            logger.info(f"Loaded configuration from {config_path}")
            return cls._from_dict(data)

        except yaml.YAMLError as e:
            logger.error(f"Failed to parse config file: {e}")
            raise

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create Config from dictionary."""
        if not isinstance(data, dict):
            raise ConfigurationError("Config file must contain a mapping")
        return cls(
            scan=ScanConfig.from_dict(data.get("scan", {})),
            classification=ClassificationConfig.from_dict(data.get("classification", {})),
            organization=OrganizationConfig.from_dict(data.get("organization", {}))
        )

    def save(self, config_path: Path) -> None:
        """Save configuration to YAML file.

        Args:
            config_path: Path where to save the configuration.
        """
        data = {
            "scan": {
                "excluded_folders": list(self.scan.excluded_folders),
            },
            "classification": {
                "enabled": self.classification.enabled,
                "llm_model": self.classification.llm_model,
                "llm_host": self.classification.llm_host,
                "temperature": self.classification.temperature,
            },
            "organization": {
                "export_folder_name": self.organization.export_folder_name,
                "backup_prefix": self.organization.backup_prefix,
                "conflict_strategy": self.organization.conflict_strategy,
                "undo_log_file": str(self.organization.undo_log_file),
            }
        }

        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

        logger.info(f"Saved configuration to {config_path}")

"""
Category Resolver
=================

Assigns a category to every scanned file:

1. Custom rules (keyword rules, then extension rules).
2. The external classifier, for files no rule matched, by name only.
3. The local extension table, for anything the classifier could not
   answer or when it fails outright.

Classifier failures never reach the caller.
"""

from typing import Callable, Dict, Iterable, List, Optional

from tidyfolder.classification.rules_engine import RulesEngine
from tidyfolder.config.categories import FileCategory, CategoryMapping, CATEGORY_MAPPING
from tidyfolder.scanning.records import FileRecord
from tidyfolder.utils.logging_config import get_logger

logger = get_logger(__name__)

NameClassifier = Callable[[List[str]], Dict[str, str]]


class CategoryResolver:
    """Runs the rule, classifier and fallback passes over scan records."""

    def __init__(
        self,
        rules_engine: Optional[RulesEngine] = None,
        classifier: Optional[NameClassifier] = None,
        category_mapping: Optional[CategoryMapping] = None
    ):
        """Initialize resolver.

        Args:
            rules_engine: User rules; none means no rule pass.
            classifier: External name classifier; none means the extension
                table answers directly.
            category_mapping: Extension table for the fallback.
        """
        self.rules_engine = rules_engine or RulesEngine()
        self.classifier = classifier
        self.category_mapping = category_mapping or CATEGORY_MAPPING

    def resolve(self, records: List[FileRecord]) -> List[FileRecord]:
        """Categorize freshly scanned records in place and return them."""
        matched = 0
        for record in records:
            if record.manually_set:
                continue
            category = self.rules_engine.evaluate(record.name, record.extension)
            if category is not None:
                record.category = category
                matched += 1
        logger.info(f"Rules matched {matched} of {len(records)} files")

        pending = [r for r in records if r.category == FileCategory.UNKNOWN and not r.manually_set]
        if pending:
            categories = self.classify_names([r.name for r in pending])
            for record in pending:
                if record.category == FileCategory.UNKNOWN:
                    record.category = categories[record.name]

        return records

    def reclassify(self, records: Iterable[FileRecord], respect_manual: bool = False) -> int:
        """Send an explicit subset back through the classifier.

        Results overwrite whatever category the records had. With
        ``respect_manual`` set, records whose category was chosen by hand
        are left alone.

        Returns:
            Number of records whose category changed.
        """
        targets = [r for r in records if not (respect_manual and r.manually_set)]
        if not targets:
            return 0

        categories = self.classify_names([r.name for r in targets])
        changed = 0
        for record in targets:
            category = categories[record.name]
            if record.category != category:
                changed += 1
            record.category = category
            record.manually_set = False

        logger.info(f"Re-classified {len(targets)} files, {changed} changed")
        return changed

    @staticmethod
    def set_category(record: FileRecord, category: FileCategory) -> None:
        """Assign a category by hand."""
        record.category = category
        record.manually_set = True
        logger.debug(f"Manual category: {record.path} -> {category.value}", extra={"category": category.value})

    def classify_names(self, file_names: List[str]) -> Dict[str, FileCategory]:
        """Return a category for every name.

        Names the classifier leaves out, or answers with a label outside
        the known set, get the extension-table category.
        """
        unique_names = list(dict.fromkeys(file_names))
        if self.classifier is None:
            return self.category_mapping.categorize_names(unique_names)

        logger.info(f"Classifying {len(unique_names)} file names")
        try:
            answer = self.classifier(unique_names) or {}
        except Exception as e:
            logger.warning(f"Classifier failed, using extension fallback: {e}")
            return self.category_mapping.categorize_names(unique_names)

        if not isinstance(answer, dict):
            logger.warning(
                f"Classifier returned {type(answer).__name__}, using extension fallback"
            )
            return self.category_mapping.categorize_names(unique_names)

        if not answer:
            logger.warning("Classifier returned nothing, using extension fallback")
            return self.category_mapping.categorize_names(unique_names)

        result: Dict[str, FileCategory] = {}
        missing = 0
        for name in unique_names:
            category = FileCategory.parse(answer.get(name))
            if category is None:
                category = self.category_mapping.categorize_name(name)
                missing += 1
            result[name] = category

        if missing:
            logger.debug(f"Extension fallback used for {missing} names")
        return result

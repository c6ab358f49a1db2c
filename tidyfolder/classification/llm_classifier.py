"""
LLM Name Classifier
===================

Asks a local LLM (Ollama) to sort file names into categories. Only the
names are sent, never paths or content. Any failure is raised as
``ClassificationError`` for the resolver to recover from.
"""

import json
import re
from typing import Dict, List, Optional, Any

from tidyfolder.config.categories import FileCategory
from tidyfolder.utils.exceptions import ClassificationError, ErrorCode
from tidyfolder.utils.logging_config import get_logger

logger = get_logger(__name__)

# Lazy import for ollama
ollama = None


def _import_ollama():
    """Lazy import ollama."""
    global ollama
    if ollama is None:
        try:
            import ollama as _ollama
            ollama = _ollama
        except ImportError:
            ollama = False
    return ollama


class PromptTemplates:
    """Prompt templates for name classification."""

    SYSTEM_PROMPT = """You are an expert file archivist.
Your task is to sort files into folders using only their names.
You must respond with ONLY valid JSON - no other text, explanations, or formatting."""

    CLASSIFICATION_PROMPT = """Analyze the following file names and their extensions.
Categorize each file into exactly one of these categories: {categories}.

Consider both the semantic meaning of the name and the technical indicator of
the extension (e.g., .pdf, .dmg, .zip, .js).

FILES:
{files}

Respond with ONLY this JSON structure (no other text):
{{"files": [{{"fileName": "original file name", "category": "category"}}]}}"""


class OllamaNameClassifier:
    """Maps file names to category labels with an Ollama model.

    Instances are callables: ``classifier(names) -> {name: label}``.
    """

    def __init__(
        self,
        model: str = "llama3",
        host: Optional[str] = None,
        temperature: float = 0.1,
        batch_size: int = 100
    ):
        """Initialize LLM classifier.

        Args:
            model: Ollama model name.
            host: Ollama server URL, None for the client default.
            temperature: LLM temperature (lower = more deterministic).
            batch_size: Maximum names sent in one request.
        """
        self.model = model
        self.host = host
        self.temperature = temperature
        self.batch_size = batch_size
        self.templates = PromptTemplates()
        self._client = None

    def _get_client(self):
        client_module = _import_ollama()
        if not client_module:
            raise ClassificationError(
                "Ollama client is not installed",
                backend="ollama",
                error_code=ErrorCode.LLM_UNAVAILABLE
            )
        if self._client is None:
            self._client = client_module.Client(host=self.host) if self.host else client_module
        return self._client

    def __call__(self, file_names: List[str]) -> Dict[str, str]:
        return self.classify(file_names)

    def classify(self, file_names: List[str]) -> Dict[str, str]:
        """Classify names in batches, one request at a time.

        Raises:
            ClassificationError: If the model is unavailable or answers
                with something that is not JSON.
        """
        result: Dict[str, str] = {}
        for start in range(0, len(file_names), self.batch_size):
            batch = file_names[start:start + self.batch_size]
            result.update(self._classify_batch(batch))
        return result

    def _classify_batch(self, file_names: List[str]) -> Dict[str, str]:
        client = self._get_client()
        prompt = self.templates.CLASSIFICATION_PROMPT.format(
            categories=", ".join(FileCategory.labels()),
            files="\n".join(f"- {name}" for name in file_names),
        )

        try:
            response = client.chat(
                model=self.model,
                messages=[
                    {'role': 'system', 'content': self.templates.SYSTEM_PROMPT},
                    {'role': 'user', 'content': prompt}
                ],
                format='json',
                options={'temperature': self.temperature},
            )
            content = response['message']['content']
        except Exception as e:
            raise ClassificationError(
                f"LLM request failed: {e}",
                backend="ollama",
                cause=e
            )

        mapping = self._parse_response(content)
        requested = set(file_names)
        return {name: label for name, label in mapping.items() if name in requested}

    def _parse_response(self, response_text: str) -> Dict[str, str]:
        """Parse the model output into a name -> label mapping.

        Raises:
            ClassificationError: If no JSON can be recovered.
        """
        data = self._load_json(response_text)
        if data is None:
            raise ClassificationError(
                f"Could not parse LLM response: {response_text[:200]}",
                backend="ollama",
                error_code=ErrorCode.INVALID_RESPONSE
            )
        return self._to_mapping(data)

    @staticmethod
    def _load_json(response_text: str) -> Optional[Any]:
        try:
            return json.loads(response_text.strip())
        except (json.JSONDecodeError, AttributeError):
            pass

        for pattern in (r'\[.*\]', r'\{.*\}'):
            json_match = re.search(pattern, response_text, re.DOTALL)
            if json_match:
                try:
                    return json.loads(json_match.group())
                except json.JSONDecodeError:
                    continue
        return None

    @staticmethod
    def _to_mapping(data: Any) -> Dict[str, str]:
        """Accept ``{"files": [...]}``, a bare list of items, or a plain
        ``{name: label}`` object.
        """
        if isinstance(data, dict) and isinstance(data.get("files"), list):
            data = data["files"]

        mapping: Dict[str, str] = {}
        if isinstance(data, list):
            for item in data:
                if isinstance(item, dict) and item.get("fileName") and item.get("category"):
                    mapping[str(item["fileName"])] = str(item["category"])
        elif isinstance(data, dict):
            for name, label in data.items():
                if isinstance(label, str):
                    mapping[str(name)] = label
        return mapping

"""Text normalization pipelines shared by indexing and querying."""

from typing import Any, List, Protocol, Dict, Type
from abc import ABC, abstractmethod
import unicodedata
import pandas as pd
import regex as re

_WHITESPACE = re.compile(r'\s+')
_PUNCTUATION = re.compile(r'[^\w\s]')

class Preprocessor(Protocol):
    """Protocol defining the interface for tokenizing preprocessors."""
    def tokenize(self, value: Any) -> List[str]:
        """Turn a raw field value into a token sequence."""
        ...

class BasePreprocessor(ABC):
    """Base class for preprocessors with common functionality."""

    @abstractmethod
    def process(self, text: str) -> str:
        """Normalize text into a single space-separated string."""
        pass

    def tokenize(self, value: Any) -> List[str]:
        if self._handle_null(value):
            return []
        text = self.process(str(value))
        return text.split(' ') if text else []

    def _handle_null(self, value: Any) -> bool:
        """Check if value is null."""
        return pd.api.types.is_scalar(value) and pd.isna(value)

class WhitespacePreprocessor(BasePreprocessor):
    """Lowercases, collapses whitespace runs and trims."""

    def process(self, text: str) -> str:
        return _WHITESPACE.sub(' ', text.lower()).strip()

class NamePreprocessor(WhitespacePreprocessor):
    """Whitespace pipeline that also folds accents and drops punctuation."""

    def process(self, text: str) -> str:
        text = ''.join(
            c for c in unicodedata.normalize('NFD', text)
            if unicodedata.category(c) != 'Mn'
        )
        return super().process(_PUNCTUATION.sub(' ', text))

class PreprocessorRegistry:
    """Registry for preprocessor types."""

    def __init__(self):
        self._preprocessors: Dict[str, Type[BasePreprocessor]] = {}
        self._register_defaults()

    def _register_defaults(self) -> None:
        """Register default preprocessors."""
        self.register('whitespace', WhitespacePreprocessor)
        self.register('name', NamePreprocessor)

    def register(self, name: str, preprocessor_class: Type[BasePreprocessor]) -> None:
        """
        Register a new preprocessor type.

        Args:
            name: Name to register the preprocessor under
            preprocessor_class: Preprocessor class to register
        """
        self._preprocessors[name] = preprocessor_class

    def create(self, name: str, **kwargs: Any) -> BasePreprocessor:
        """
        Create a preprocessor instance.

        Args:
            name: Name of the preprocessor type
            **kwargs: Configuration parameters for the preprocessor

        Returns:
            BasePreprocessor: Configured preprocessor instance

        Raises:
            ValueError: If preprocessor type not found
        """
        preprocessor_class = self._preprocessors.get(name)
        if not preprocessor_class:
            raise ValueError(f"Unknown preprocessor type: {name}")

        return preprocessor_class(**kwargs)

    @property
    def names(self) -> List[str]:
        return sorted(self._preprocessors)

# Global registry instance
registry = PreprocessorRegistry()

_default = WhitespacePreprocessor()

def normalize(text: Any) -> List[str]:
    """Lowercase, collapse whitespace and split ``text`` into tokens."""
    return _default.tokenize(text)

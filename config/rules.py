"""Output column naming rules for the record linking system."""

from abc import ABC, abstractmethod
from typing import List
import regex as re

_WORD = re.compile(r'\p{Lu}+(?!\p{Ll})|\p{Lu}?\p{Ll}+|\p{N}+')

def pascal_case(text: str) -> str:
    """
    Convert arbitrary text to PascalCase.

    Words are split on any non-alphanumeric character and on camelCase
    boundaries, so ``acme_list.csv`` and ``acmeList.CSV`` both become
    ``AcmeListCsv``.
    """
    return ''.join(word[:1].upper() + word[1:].lower() for word in _WORD.findall(text))

class ColumnNamingRule(ABC):
    """Base class for naming the columns a secondary dataset contributes."""

    @abstractmethod
    def column_name(self, dataset_name: str, header: str) -> str:
        """
        Build the output column name for a header.

        Args:
            dataset_name: Name of the secondary dataset (usually its file name)
            header: Original header in that dataset

        Returns:
            str: Column name in the merged output
        """
        pass

    def column_names(
        self,
        dataset_name: str,
        headers: List[str],
        certainty_column: str
    ) -> List[str]:
        """Output columns for a dataset: its headers, then the certainty column."""
        return [
            self.column_name(dataset_name, header)
            for header in list(headers) + [certainty_column]
        ]

class PascalPrefixRule(ColumnNamingRule):
    """Prefix headers with the PascalCased dataset name and a separator."""

    def __init__(self, separator: str = '__'):
        self.separator = separator

    def column_name(self, dataset_name: str, header: str) -> str:
        return f"{pascal_case(dataset_name)}{self.separator}{header}"

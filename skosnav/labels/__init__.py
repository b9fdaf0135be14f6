"""Label resolution and loading."""

from skosnav.labels.loader import LabelLoader
from skosnav.labels.resolver import default_language_priorities, select_label, sort_labels

__all__ = ['LabelLoader', 'default_language_priorities', 'select_label', 'sort_labels']

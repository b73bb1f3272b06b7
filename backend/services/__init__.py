"""Services module - Business logic layer"""

from .config_manager import ConfigManager
from .diff_generator import DiffGenerator, apply_diff_hunks, calculate_line_diff, get_diff_summary
from .scholar_client import SemanticScholarClient

__all__ = [
    "ConfigManager",
    "DiffGenerator",
    "calculate_line_diff",
    "apply_diff_hunks",
    "get_diff_summary",
    "SemanticScholarClient",
]

"""
Utilities package.

Provides shared utilities for the asset pipeline:
- errors: StageError taxonomy and MinifyWarning
- globs: source selection and watch matching
- css: stylesheet prefixing and restructuring
- sourcemaps: source map v3 generation
- notify: console notification channel
- helpers: Common utility functions
"""
from .errors import (
    StageError,
    StageIOError,
    TransformError,
    MinifyWarning,
    UnknownProfileError,
    UnknownStageError,
)

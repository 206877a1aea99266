#!/usr/bin/env python3
"""
Tests for src/utils/notify.py and src/utils/errors.py
"""
from __future__ import annotations

import io
import pytest
from pathlib import Path
import sys

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / 'src'))

from utils.errors import MinifyWarning, StageError, StageIOError, TransformError
from utils.notify import Notifier, get_notifier, set_notifier


class TestErrors:
    """Tests for the error taxonomy."""

    def test_str_with_path(self):
        err = TransformError('styles', 'Invalid CSS', 'css/a.css')
        assert str(err) == '[styles] Invalid CSS (css/a.css)'

    def test_str_without_path(self):
        assert str(StageIOError('clean', 'denied')) == '[clean] denied'

    def test_hierarchy(self):
        assert issubclass(StageIOError, StageError)
        assert issubclass(TransformError, StageError)
        assert not issubclass(MinifyWarning, StageError)
        assert issubclass(MinifyWarning, UserWarning)


class TestNotifier:
    """Tests for Notifier."""

    def test_error_printed(self):
        stream = io.StringIO()
        notifier = Notifier(stream=stream)
        notifier.error(TransformError('sprites', 'Invalid SVG', 'img/svg/x.svg'))

        out = stream.getvalue()
        assert "TransformError in stage 'sprites'" in out
        assert 'img/svg/x.svg' in out
        assert len(notifier.history) == 1

    def test_warning_issued(self):
        stream = io.StringIO()
        notifier = Notifier(stream=stream)
        with pytest.warns(MinifyWarning, match='left unminified'):
            notifier.warning(MinifyWarning('scripts', 'left unminified', 'js/main.js'))
        assert "WARNING: stage 'scripts'" in stream.getvalue()

    def test_disabled_is_silent(self):
        stream = io.StringIO()
        notifier = Notifier(enabled=False, stream=stream)
        notifier.error(StageIOError('clean', 'denied'))
        notifier.info('hello')
        assert stream.getvalue() == ''
        assert len(notifier.history) == 2

    def test_set_notifier_returns_previous(self, silent_notifier):
        replacement = Notifier(enabled=False)
        previous = set_notifier(replacement)
        try:
            assert previous is silent_notifier
            assert get_notifier() is replacement
        finally:
            set_notifier(previous)

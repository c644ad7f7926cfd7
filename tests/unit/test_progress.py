from __future__ import annotations

from unittest.mock import Mock, patch

from csvbind.services.progress import ProgressTracker, is_tty_enabled


def test_is_tty_enabled_returns_stdout_isatty():
    """is_tty_enabled mirrors sys.stdout.isatty()."""
    with patch('sys.stdout.isatty', return_value=True):
        assert is_tty_enabled() is True

    with patch('sys.stdout.isatty', return_value=False):
        assert is_tty_enabled() is False


class TestProgressTracker:
    """ProgressTracker with and without a TTY."""

    def test_init_with_tty_enabled(self):
        with patch('csvbind.services.progress.is_tty_enabled', return_value=True), \
             patch('csvbind.services.progress.tqdm') as mock_tqdm:

            tracker = ProgressTracker(5, description="Test tables")

            assert tracker.total_tables == 5
            assert tracker.current_table == 0
            assert tracker.enabled is True
            mock_tqdm.assert_called_once_with(
                total=5,
                desc="Test tables",
                unit="table",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )

    def test_init_with_tty_disabled(self):
        with patch('csvbind.services.progress.is_tty_enabled', return_value=False), \
             patch('csvbind.services.progress.tqdm') as mock_tqdm:
            tracker = ProgressTracker(5)
            assert tracker.enabled is False
            assert tracker.pbar is None
            mock_tqdm.assert_not_called()

    def test_start_and_finish_table(self):
        mock_pbar = Mock()
        with patch('csvbind.services.progress.is_tty_enabled', return_value=True), \
             patch('csvbind.services.progress.tqdm', return_value=mock_pbar):

            tracker = ProgressTracker(2, description="Loading")
            tracker.start_table("items.csv")
            assert tracker.current_table == 1
            mock_pbar.set_description.assert_called_with("Loading (items.csv)")

            tracker.finish_table("degraded")
            mock_pbar.update.assert_called_once_with(1)
            mock_pbar.set_description.assert_called_with("Loading")
            mock_pbar.set_postfix.assert_called_once_with(last="degraded")

    def test_methods_are_noops_without_tty(self):
        with patch('csvbind.services.progress.is_tty_enabled', return_value=False):
            tracker = ProgressTracker(1)
            tracker.start_table("a.csv")
            tracker.finish_table()
            tracker.close()
            assert tracker.current_table == 1

    def test_context_manager_closes_bar(self):
        mock_pbar = Mock()
        with patch('csvbind.services.progress.is_tty_enabled', return_value=True), \
             patch('csvbind.services.progress.tqdm', return_value=mock_pbar):
            with ProgressTracker(1) as tracker:
                assert tracker.pbar is mock_pbar
            mock_pbar.close.assert_called_once()
            assert tracker.pbar is None

"""
Tests for the background dispatcher.
"""

import threading

from app.services.background import BackgroundDispatcher


class TestBackgroundDispatcher:

    def test_synchronous_runs_inline(self):
        calls = []
        dispatcher = BackgroundDispatcher(synchronous=True)

        dispatcher.submit(calls.append, 'done')

        assert calls == ['done']

    def test_passes_keyword_arguments(self):
        calls = []
        dispatcher = BackgroundDispatcher(synchronous=True)

        dispatcher.submit(lambda a, b=None: calls.append((a, b)), 1, b=2)

        assert calls == [(1, 2)]

    def test_failure_is_swallowed(self, caplog):
        def boom():
            raise RuntimeError('boom')

        dispatcher = BackgroundDispatcher(synchronous=True)
        dispatcher.submit(boom, description='Exploding task')

        assert 'Exploding task failed' in caplog.text

    def test_threaded_task_runs(self):
        finished = threading.Event()
        dispatcher = BackgroundDispatcher(max_workers=1)

        dispatcher.submit(finished.set)
        dispatcher.shutdown(wait=True)

        assert finished.is_set()

    def test_submit_after_shutdown_is_dropped(self):
        calls = []
        dispatcher = BackgroundDispatcher(max_workers=1)
        dispatcher.shutdown()

        dispatcher.submit(calls.append, 'late')

        assert calls == []

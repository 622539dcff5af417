"""
Tests for the background task runner.
"""

import threading

from flask import current_app

from wirsuchen.services.background import BackgroundTaskRunner


class TestBackgroundTaskRunner:
    """Tests for BackgroundTaskRunner"""

    def test_runs_task_on_worker_thread(self):
        runner = BackgroundTaskRunner(max_workers=1)
        try:
            future = runner.submit(lambda x, y: x + y, 2, 3)
            assert future.result(timeout=5) == 5
            assert runner.wait(timeout=5) is True
            assert runner.pending_count() == 0
        finally:
            runner.shutdown()

    def test_errors_are_contained(self):
        def boom():
            raise RuntimeError('task failed')

        runner = BackgroundTaskRunner(max_workers=1)
        try:
            future = runner.submit(boom)
            assert future.result(timeout=5) is None
        finally:
            runner.shutdown()

    def test_full_queue_drops_tasks(self):
        release = threading.Event()
        runner = BackgroundTaskRunner(max_workers=1, max_pending=1)
        try:
            first = runner.submit(release.wait, 5)
            assert first is not None
            assert runner.submit(lambda: None) is None
        finally:
            release.set()
            runner.shutdown()

    def test_inline_mode(self):
        runner = BackgroundTaskRunner(inline=True)
        calls = []

        future = runner.submit(calls.append, 'done', name='append')

        assert calls == ['done']
        assert future.done()
        assert runner.pending_count() == 0

    def test_tasks_get_app_context(self, app):
        runner = BackgroundTaskRunner(inline=True, app=app)
        future = runner.submit(lambda: current_app.name)
        assert future.result() == app.name

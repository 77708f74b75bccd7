"""
Integration tests for the streaming date check.

Runs StreamingDateCheckJob end to end against an in-memory store, a stubbed
TMDB lookup and a mocked sender.
"""

import json
import unittest
from datetime import date
from unittest.mock import Mock, patch

from releases.check_streaming_dates import StreamingDateCheckJob, main
from releases.store import SourceQueryError
from shared.config import ReleaseCheckConfig
from tests.fixtures.follow_factory import create_test_candidate
from tests.fixtures.mock_helpers import FakeReleaseStore, create_mock_sender

SECRET = "cron-secret"


def _lookup(dates=None, failing=None):
    """Stub TMDB lookup: movie_id -> date, raising for ids in `failing`."""
    dates = dates or {}
    failing = failing or set()

    def lookup(movie_id):
        if movie_id in failing:
            raise ConnectionError(f"TMDB unavailable for {movie_id}")
        return dates.get(movie_id)

    return Mock(side_effect=lookup)


def _job(store, lookup=None, send=None):
    config = ReleaseCheckConfig(cron_secret=SECRET)
    return StreamingDateCheckJob(
        config, store, lookup=lookup or _lookup(), send=send or create_mock_sender()
    )


@patch("builtins.print")
@patch("releases.dispatcher.log_release_error", return_value="/tmp/release_error.txt")
@patch("releases.check_streaming_dates.log_release_error", return_value="/tmp/release_error.txt")
class TestStreamingDateCheckJob(unittest.IsolatedAsyncioTestCase):
    """End-to-end behaviour of StreamingDateCheckJob.run()."""

    async def test_found_dates_are_stored_and_announced(self, mock_job_log, mock_dispatch_log, mock_print):
        """Dates found are written back and each follower is emailed once."""
        store = FakeReleaseStore(
            candidates=[
                create_test_candidate(follow_id="f-1", movie_id=1, user_id="user_a"),
                create_test_candidate(follow_id="f-2", movie_id=2, user_id="user_a"),
                create_test_candidate(follow_id="f-3", movie_id=3, user_id="user_b"),
            ],
            emails={"user_a": "a@example.com", "user_b": "b@example.com"},
        )
        lookup = _lookup({1: date(2026, 5, 1), 2: date(2026, 6, 1)})
        send = create_mock_sender()

        result = await _job(store, lookup, send).run(SECRET)

        self.assertEqual(result.status, "completed")
        self.assertEqual(result.http_status, 200)
        self.assertEqual(result.checked, 3)
        self.assertEqual(result.found, 2)
        self.assertEqual(result.updated, 2)
        self.assertEqual(store.updates, {"f-1": date(2026, 5, 1), "f-2": date(2026, 6, 1)})
        self.assertEqual(store.lookups, ["user_a"])
        self.assertEqual(result.sent, 2)
        sent_tasks = [call.args[0] for call in send.call_args_list]
        self.assertEqual({t.follow_type for t in sent_tasks}, {"streaming"})
        self.assertEqual(
            {t.movie_id: t.release_date for t in sent_tasks},
            {1: date(2026, 5, 1), 2: date(2026, 6, 1)},
        )

    async def test_each_movie_looked_up_once(self, mock_job_log, mock_dispatch_log, mock_print):
        """Two followers of one movie share a single TMDB lookup."""
        store = FakeReleaseStore(
            candidates=[
                create_test_candidate(follow_id="f-1", movie_id=7, user_id="user_a"),
                create_test_candidate(follow_id="f-2", movie_id=7, user_id="user_b"),
            ],
            emails={"user_a": "a@example.com", "user_b": "b@example.com"},
        )
        lookup = _lookup({7: date(2026, 5, 1)})

        result = await _job(store, lookup).run(SECRET)

        lookup.assert_called_once_with(7)
        self.assertEqual(result.updated, 2)
        self.assertEqual(result.sent, 2)

    async def test_lookup_failure_isolated(self, mock_job_log, mock_dispatch_log, mock_print):
        """A failing lookup leaves that follow alone; others proceed."""
        store = FakeReleaseStore(
            candidates=[
                create_test_candidate(follow_id="f-1", movie_id=1, user_id="user_a"),
                create_test_candidate(follow_id="f-2", movie_id=2, user_id="user_a"),
            ],
            emails={"user_a": "a@example.com"},
        )
        lookup = _lookup({1: date(2026, 5, 1), 2: date(2026, 6, 1)}, failing={2})

        result = await _job(store, lookup).run(SECRET)

        self.assertTrue(result.success)
        self.assertEqual(result.found, 1)
        self.assertEqual(list(store.updates), ["f-1"])
        self.assertEqual(result.sent, 1)
        self.assertEqual(mock_job_log.call_args.args[0], "lookup")

    async def test_failed_update_sends_no_email(self, mock_job_log, mock_dispatch_log, mock_print):
        """A follow whose update failed is not announced."""
        store = FakeReleaseStore(
            candidates=[
                create_test_candidate(follow_id="f-1", movie_id=1, user_id="user_a"),
                create_test_candidate(follow_id="f-2", movie_id=2, user_id="user_b"),
            ],
            emails={"user_a": "a@example.com", "user_b": "b@example.com"},
            failing_updates={"f-2"},
        )
        lookup = _lookup({1: date(2026, 5, 1), 2: date(2026, 6, 1)})
        send = create_mock_sender()

        result = await _job(store, lookup, send).run(SECRET)

        self.assertEqual(result.updated, 1)
        self.assertEqual(result.update_failed, 1)
        self.assertEqual(store.lookups, ["user_a"])
        self.assertEqual([c.args[0].movie_id for c in send.call_args_list], [1])

    async def test_failed_send_does_not_fail_job(self, mock_job_log, mock_dispatch_log, mock_print):
        store = FakeReleaseStore(
            candidates=[
                create_test_candidate(follow_id="f-1", movie_id=1, user_id="user_a"),
                create_test_candidate(follow_id="f-2", movie_id=2, user_id="user_b"),
            ],
            emails={"user_a": "a@example.com", "user_b": "b@example.com"},
        )
        lookup = _lookup({1: date(2026, 5, 1), 2: date(2026, 6, 1)})
        send = create_mock_sender(failing_emails={"b@example.com"})

        result = await _job(store, lookup, send).run(SECRET)

        self.assertTrue(result.success)
        self.assertEqual(result.sent, 1)
        self.assertEqual(result.failed, 1)
        self.assertEqual(result.updated, 2)

    async def test_follower_without_email_skipped(self, mock_job_log, mock_dispatch_log, mock_print):
        """Date is still stored when the follower can't be reached."""
        store = FakeReleaseStore(
            candidates=[create_test_candidate(follow_id="f-1", movie_id=1, user_id="user_x")],
        )
        send = create_mock_sender()

        result = await _job(store, _lookup({1: date(2026, 5, 1)}), send).run(SECRET)

        self.assertEqual(result.updated, 1)
        self.assertEqual(result.skipped, 1)
        send.assert_not_called()

    async def test_no_date_yet(self, mock_job_log, mock_dispatch_log, mock_print):
        """Movies without a home release date are left for a later run."""
        store = FakeReleaseStore(candidates=[create_test_candidate(movie_id=1)])
        send = create_mock_sender()

        result = await _job(store, _lookup({}), send).run(SECRET)

        self.assertEqual(result.checked, 1)
        self.assertEqual(result.found, 0)
        self.assertEqual(store.updates, {})
        send.assert_not_called()

    async def test_wrong_token_is_unauthorized(self, mock_job_log, mock_dispatch_log, mock_print):
        store = FakeReleaseStore(candidates=[create_test_candidate()])
        lookup = _lookup()

        result = await _job(store, lookup).run("wrong-secret")

        self.assertEqual(result.status, "unauthorized")
        self.assertEqual(result.http_status, 401)
        self.assertEqual(store.queries, [])
        lookup.assert_not_called()

    async def test_query_failure_is_server_error(self, mock_job_log, mock_dispatch_log, mock_print):
        store = FakeReleaseStore(query_error=SourceQueryError("network error", follow_type="streaming"))
        lookup = _lookup()

        result = await _job(store, lookup).run(SECRET)

        self.assertEqual(result.status, "failed")
        self.assertEqual(result.http_status, 500)
        self.assertIn("network error", result.error)
        lookup.assert_not_called()
        self.assertEqual(mock_job_log.call_args.args[0], "query")

    async def test_limit_passed_to_store(self, mock_job_log, mock_dispatch_log, mock_print):
        store = FakeReleaseStore()

        await _job(store).run(SECRET, limit=25)

        self.assertEqual(store.queries, [("streaming_date_candidates", 25)])

    async def test_dry_run_changes_nothing(self, mock_job_log, mock_dispatch_log, mock_print):
        """Dry run looks up dates without updating or emailing."""
        store = FakeReleaseStore(
            candidates=[create_test_candidate(follow_id="f-1", movie_id=1, user_id="user_a")],
            emails={"user_a": "a@example.com"},
        )
        send = create_mock_sender()

        result = await _job(store, _lookup({1: date(2026, 5, 1)}), send).run(SECRET, dry_run=True)

        self.assertTrue(result.dry_run)
        self.assertEqual(result.found, 1)
        self.assertEqual(result.updated, 0)
        self.assertEqual(store.updates, {})
        send.assert_not_called()


@patch("builtins.print")
class TestCheckStreamingDatesCli(unittest.TestCase):
    """Tests for the command-line entry point."""

    @patch.dict("os.environ", {"CRON_SECRET": SECRET, "TMDB_API_KEY": "tmdb-key"})
    @patch("releases.check_streaming_dates.ReleaseStore.from_config")
    def test_cli_dry_run(self, mock_from_config, mock_print):
        """--limit reaches the store; exit code 0 on success."""
        store = FakeReleaseStore()
        mock_from_config.return_value = store

        exit_code = main(["--key", SECRET, "--limit", "5", "--dry-run"])

        self.assertEqual(exit_code, 0)
        self.assertEqual(store.queries, [("streaming_date_candidates", 5)])
        output = json.loads(mock_print.call_args_list[-1][0][0])
        self.assertEqual(output["status"], "completed")
        self.assertTrue(output["success"])

    @patch.dict("os.environ", {"CRON_SECRET": SECRET, "TMDB_API_KEY": "tmdb-key"})
    @patch("releases.check_streaming_dates.ReleaseStore.from_config")
    def test_cli_unauthorized_exit_code(self, mock_from_config, mock_print):
        mock_from_config.return_value = Mock()

        self.assertEqual(main(["--key", "nope"]), 2)

    @patch.dict("os.environ", {"CRON_SECRET": SECRET, "TMDB_API_KEY": "tmdb-key"})
    @patch("releases.check_streaming_dates.ReleaseStore.from_config")
    def test_cli_failure_exit_code(self, mock_from_config, mock_print):
        mock_from_config.return_value = FakeReleaseStore(query_error=SourceQueryError("boom"))

        with patch("releases.check_streaming_dates.log_release_error", return_value="/tmp/x.txt"):
            self.assertEqual(main(["--key", SECRET]), 1)

    def test_cli_rejects_zero_limit(self, mock_print):
        with patch("sys.stderr"), self.assertRaises(SystemExit):
            main(["--key", SECRET, "--limit", "0"])


if __name__ == "__main__":
    unittest.main()

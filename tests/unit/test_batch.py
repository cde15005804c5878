"""Unit tests for run_batch() and BatchResult."""

from oltshell.core.batch import BatchResult, run_batch
from oltshell.core.errors import CommandError, CommandTimeoutError, ErrorCategory


def operation(item):
    if item == "bad":
        raise CommandError(item, "CLI error detected (% invalid)", output="% Invalid input")
    if item == "slow":
        raise CommandTimeoutError(item, 1.0, output="partial")
    return item.upper()


class TestRunBatch:
    """Per-item results and aggregate counts."""

    def test_all_succeed(self):
        result = run_batch(["a", "b"], operation)

        assert (result.total, result.success, result.failed) == (2, 2, 0)
        assert [r.output for r in result.results] == ["A", "B"]
        assert result.all_succeeded
        assert result.duration >= 0

    def test_continue_past_failures(self):
        result = run_batch(["a", "bad", "slow", "b"], operation)

        assert (result.total, result.success, result.failed) == (4, 2, 2)
        bad = result.results[1]
        assert bad.error_category == ErrorCategory.COMMAND
        assert bad.output == "% Invalid input"
        assert result.results[2].error_category == ErrorCategory.TIMEOUT
        assert result.errors_by_category() == {ErrorCategory.COMMAND: 1, ErrorCategory.TIMEOUT: 1}

    def test_stop_on_error(self):
        result = run_batch(["a", "bad", "b"], operation, stop_on_error=True)

        assert result.total == 3
        assert len(result.results) == 2
        assert result.stopped_early
        assert not result.all_succeeded

    def test_stop_on_last_item_is_not_early(self):
        result = run_batch(["a", "bad"], operation, stop_on_error=True)
        assert not result.stopped_early

    def test_identify(self):
        result = run_batch([{"sn": "HWTC1234"}], lambda item: None, identify=lambda item: item["sn"])
        assert result.results[0].identifier == "HWTC1234"

    def test_repr(self):
        summary = BatchResult(total=1)
        assert "0/1 success" in repr(summary)

"""Tests for the three-stage review pipeline state machine.

The completion client is replaced by a scripted stub: each call pops the
next canned answer (or exception), and every request is recorded so tests
can assert exactly which stages ran and with what input.
"""

import json

import pytest

from prcritic_core.models import Finding, PipelineContext
from prcritic_core.pipeline import (
    STEP_CONTEXT,
    STEP_INITIAL_REVIEW,
    STEP_REFINEMENT,
    PipelineCancelledError,
    PipelineError,
    PipelineState,
    ReviewPipeline,
)
from prcritic_core.prompts import REVIEW_SCHEMA
from prcritic_core.providers.base import BaseCompletionClient

DIFF = "+++ b/src/a.ts\n@@ -1,3 +1,5 @@\n+x"

INITIAL = {"strengths": ["ok"], "improvements": [{"line": 2, "file": "src/a.ts", "category": "Style", "comment": "a"}]}
FINAL = {"strengths": ["good"], "improvements": [{"line": 3, "file": "src/a.ts", "category": "Security", "comment": "b"}]}


class _ScriptedClient(BaseCompletionClient):
    MODEL = "stub-model"

    def __init__(self, *answers):
        self.answers = list(answers)
        self.calls = []

    def _call_api(self, model, prompt, schema):
        self.calls.append({"model": model, "prompt": prompt, "schema": schema})
        answer = self.answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer


def _context():
    return PipelineContext(
        title="Add widget",
        body="",
        diff=DIFF,
        readme="# Widget",
        snapshots="--- File: src/a.ts ---\nold\n\n",
    )


def _happy_client():
    return _ScriptedClient("The PR adds a widget.", json.dumps(INITIAL), json.dumps(FINAL))


class TestTransitions:
    def test_starts_awaiting_context(self):
        assert ReviewPipeline(_happy_client(), _context()).state is PipelineState.AWAITING_CONTEXT

    def test_each_step_advances_one_state(self):
        pipeline = ReviewPipeline(_happy_client(), _context())
        assert pipeline.step() is PipelineState.AWAITING_INITIAL_REVIEW
        assert pipeline.step() is PipelineState.AWAITING_REFINEMENT
        assert pipeline.step() is PipelineState.COMPLETE

    def test_context_stage_stores_summary(self):
        pipeline = ReviewPipeline(_happy_client(), _context())
        pipeline.step()
        assert pipeline.summary == "The PR adds a widget."

    def test_initial_review_kept_for_inspection(self):
        pipeline = ReviewPipeline(_happy_client(), _context())
        pipeline.step()
        pipeline.step()
        assert pipeline.initial_review.improvements[0].comment == "a"

    def test_step_after_completion_raises(self):
        pipeline = ReviewPipeline(_happy_client(), _context())
        pipeline.run()
        with pytest.raises(RuntimeError):
            pipeline.step()


class TestRun:
    def test_returns_refined_review_not_initial(self):
        result = ReviewPipeline(_happy_client(), _context()).run()
        assert result.strengths == ["good"]
        assert result.improvements == [Finding(line=3, file="src/a.ts", category="Security", comment="b")]

    def test_stages_run_in_order_with_expected_schemas(self):
        client = _happy_client()
        ReviewPipeline(client, _context(), model="gemini-2.5-flash").run()

        assert [c["schema"] for c in client.calls] == [None, REVIEW_SCHEMA, REVIEW_SCHEMA]
        assert all(c["model"] == "gemini-2.5-flash" for c in client.calls)

    def test_provider_default_model_when_none_given(self):
        client = _happy_client()
        ReviewPipeline(client, _context()).run()
        assert client.calls[0]["model"] == "stub-model"

    def test_context_prompt_carries_all_inputs(self):
        client = _happy_client()
        ReviewPipeline(client, _context()).run()
        prompt = client.calls[0]["prompt"]
        assert "Add widget" in prompt
        assert "No description provided." in prompt
        assert "# Widget" in prompt
        assert "--- File: src/a.ts ---" in prompt
        assert DIFF in prompt

    def test_later_stages_receive_summary_and_diff(self):
        client = _happy_client()
        ReviewPipeline(client, _context()).run()
        for call in client.calls[1:]:
            assert "The PR adds a widget." in call["prompt"]
            assert DIFF in call["prompt"]

    def test_refinement_receives_serialized_initial_review(self):
        client = _happy_client()
        ReviewPipeline(client, _context()).run()
        assert '"comment": "a"' in client.calls[2]["prompt"]

    def test_log_has_one_entry_per_stage(self):
        pipeline = ReviewPipeline(_happy_client(), _context())
        pipeline.run()
        assert [e.step for e in pipeline.log] == [STEP_CONTEXT, STEP_INITIAL_REVIEW, STEP_REFINEMENT]
        assert pipeline.log[0].response == "The PR adds a widget."
        assert all(e.error is None for e in pipeline.log)

    def test_on_log_sees_each_entry_before_next_stage(self):
        client = _happy_client()
        seen = []

        def on_log(entry):
            # Calls made so far == entries logged so far: logging is eager.
            seen.append((entry.step, len(client.calls)))

        ReviewPipeline(client, _context(), on_log=on_log).run()
        assert seen == [(STEP_CONTEXT, 1), (STEP_INITIAL_REVIEW, 2), (STEP_REFINEMENT, 3)]


class TestFailures:
    def test_context_stage_network_error_aborts(self):
        client = _ScriptedClient(ConnectionError("boom"))
        pipeline = ReviewPipeline(client, _context())

        with pytest.raises(PipelineError) as exc:
            pipeline.run()

        assert exc.value.stage == STEP_CONTEXT
        assert "boom" in exc.value.reason
        assert pipeline.state is PipelineState.FAILED
        assert len(client.calls) == 1
        assert pipeline.log[0].response is None
        assert "boom" in pipeline.log[0].error

    def test_empty_summary_aborts(self):
        pipeline = ReviewPipeline(_ScriptedClient("   "), _context())
        with pytest.raises(PipelineError, match="empty context summary"):
            pipeline.run()

    def test_invalid_stage_two_json_stops_before_stage_three(self):
        client = _ScriptedClient("summary", "this is not json", json.dumps(FINAL))
        pipeline = ReviewPipeline(client, _context())

        with pytest.raises(PipelineError) as exc:
            pipeline.run()

        assert exc.value.stage == STEP_INITIAL_REVIEW
        assert len(client.calls) == 2  # no refinement call
        assert [e.step for e in pipeline.log] == [STEP_CONTEXT, STEP_INITIAL_REVIEW]
        assert pipeline.log[1].response == "this is not json"
        assert pipeline.result is None

    def test_schema_violation_in_refinement_is_fatal(self):
        bad = json.dumps({"improvements": [{"line": 1, "file": "f"}]})
        pipeline = ReviewPipeline(_ScriptedClient("summary", json.dumps(INITIAL), bad), _context())
        with pytest.raises(PipelineError) as exc:
            pipeline.run()
        assert exc.value.stage == STEP_REFINEMENT
        assert len(pipeline.log) == 3

    def test_no_retry_after_failure(self):
        client = _ScriptedClient("summary", RuntimeError("rate limited"), json.dumps(INITIAL), json.dumps(FINAL))
        with pytest.raises(PipelineError):
            ReviewPipeline(client, _context()).run()
        assert len(client.calls) == 2

    def test_failure_recorded_on_pipeline(self):
        pipeline = ReviewPipeline(_ScriptedClient("summary", "[]"), _context())
        with pytest.raises(PipelineError):
            pipeline.run()
        assert pipeline.failed_stage == STEP_INITIAL_REVIEW
        assert "JSON object" in pipeline.failure


class TestCancellation:
    def test_cancel_between_stages(self):
        client = _happy_client()
        pipeline = ReviewPipeline(client, _context())
        checks = iter([False, True])

        with pytest.raises(PipelineCancelledError) as exc:
            pipeline.run(should_cancel=lambda: next(checks))

        assert exc.value.stage == STEP_INITIAL_REVIEW
        assert len(client.calls) == 1
        assert pipeline.state is PipelineState.FAILED
        assert pipeline.failure == "cancelled"

    def test_cancelled_is_a_pipeline_error(self):
        with pytest.raises(PipelineError):
            ReviewPipeline(_happy_client(), _context()).run(should_cancel=lambda: True)

    def test_never_cancelled_runs_to_completion(self):
        pipeline = ReviewPipeline(_happy_client(), _context())
        pipeline.run(should_cancel=lambda: False)
        assert pipeline.state is PipelineState.COMPLETE

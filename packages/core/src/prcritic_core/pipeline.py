"""Three-stage review pipeline.

    AWAITING_CONTEXT ──► AWAITING_INITIAL_REVIEW ──► AWAITING_REFINEMENT ──► COMPLETE
           │                       │                          │
           └───────────────────────┴──────────────────────────┴──► FAILED

Each transition is one call to the completion client. Its prompt and raw
answer are appended to the audit log before the answer is judged, so a
failed stage still leaves its exchange behind for inspection. Stages never
overlap and nothing is retried.
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Callable

from prcritic_core.models import ApiLogEntry, PipelineContext, ReviewResult
from prcritic_core.prompts import CONTEXT_PROMPT, INITIAL_REVIEW_PROMPT, REFINEMENT_PROMPT, REVIEW_SCHEMA
from prcritic_core.providers.base import BaseCompletionClient, CompletionError
from prcritic_core.validation import ReviewParseFailure, parse_review

logger = logging.getLogger(__name__)

STEP_CONTEXT = "Context Gathering"
STEP_INITIAL_REVIEW = "Initial Review"
STEP_REFINEMENT = "Refinement"

_NO_DESCRIPTION = "No description provided."


class PipelineState(str, Enum):
    AWAITING_CONTEXT = "awaiting_context"
    AWAITING_INITIAL_REVIEW = "awaiting_initial_review"
    AWAITING_REFINEMENT = "awaiting_refinement"
    COMPLETE = "complete"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (PipelineState.COMPLETE, PipelineState.FAILED)


class PipelineError(RuntimeError):
    """A review stage failed; the run produced no result."""

    def __init__(self, stage: str, reason: str):
        super().__init__(f"{stage} failed: {reason}")
        self.stage = stage
        self.reason = reason


class PipelineCancelledError(PipelineError):
    pass


class ReviewPipeline:
    """Runs context synthesis, initial review and refinement for one PR.

    One instance per run; it owns its PipelineContext and audit log. Drive it
    with run(), or call step() to advance one stage at a time.
    """

    def __init__(
        self,
        client: BaseCompletionClient,
        context: PipelineContext,
        model: str | None = None,
        on_log: Callable[[ApiLogEntry], None] | None = None,
    ):
        self.client = client
        self.context = context
        self.model = model
        self.on_log = on_log

        self.state = PipelineState.AWAITING_CONTEXT
        self.log: list[ApiLogEntry] = []
        self.initial_review: ReviewResult | None = None
        self.result: ReviewResult | None = None
        self.failed_stage: str | None = None
        self.failure: str | None = None

    # ------------------------------------------------------------------ #
    # Driving                                                              #
    # ------------------------------------------------------------------ #

    def step(self) -> PipelineState:
        """Perform the transition out of the current state and return the new one."""
        if self.state is PipelineState.AWAITING_CONTEXT:
            self._gather_context()
        elif self.state is PipelineState.AWAITING_INITIAL_REVIEW:
            self._initial_review()
        elif self.state is PipelineState.AWAITING_REFINEMENT:
            self._refine()
        else:
            raise RuntimeError(f"Pipeline already finished in state {self.state.value!r}.")
        return self.state

    def run(self, should_cancel: Callable[[], bool] | None = None) -> ReviewResult:
        """Step until COMPLETE or FAILED.

        ``should_cancel`` is polled between stages only; a stage in flight is
        never interrupted.
        """
        while not self.state.is_terminal:
            if should_cancel is not None and should_cancel():
                stage = self._stage_for(self.state)
                self._fail(stage, "cancelled")
                raise PipelineCancelledError(stage, "cancelled")
            self.step()

        if self.state is PipelineState.FAILED:
            raise PipelineError(self.failed_stage or "pipeline", self.failure or "unknown error")
        return self.result

    @property
    def summary(self) -> str | None:
        return self.context.summary

    # ------------------------------------------------------------------ #
    # Stages                                                               #
    # ------------------------------------------------------------------ #

    def _gather_context(self):
        ctx = self.context
        prompt = CONTEXT_PROMPT.format(
            title=ctx.title,
            body=ctx.body or _NO_DESCRIPTION,
            readme=ctx.readme,
            snapshots=ctx.snapshots,
            diff=ctx.diff,
        )
        text = self._exchange(STEP_CONTEXT, prompt, schema=None)
        if text is None:
            return
        if not text:
            self._fail(STEP_CONTEXT, "empty context summary")
            return
        ctx.summary = text
        self.state = PipelineState.AWAITING_INITIAL_REVIEW

    def _initial_review(self):
        prompt = INITIAL_REVIEW_PROMPT.format(summary=self.context.summary, diff=self.context.diff)
        review = self._structured_exchange(STEP_INITIAL_REVIEW, prompt)
        if review is None:
            return
        self.initial_review = review
        self.state = PipelineState.AWAITING_REFINEMENT

    def _refine(self):
        prompt = REFINEMENT_PROMPT.format(
            summary=self.context.summary,
            initial_review=json.dumps(self.initial_review.to_dict(), indent=2),
            diff=self.context.diff,
        )
        review = self._structured_exchange(STEP_REFINEMENT, prompt)
        if review is None:
            return
        self.result = review
        self.state = PipelineState.COMPLETE

    # ------------------------------------------------------------------ #
    # Helpers                                                              #
    # ------------------------------------------------------------------ #

    def _structured_exchange(self, step: str, prompt: str) -> ReviewResult | None:
        text = self._exchange(step, prompt, schema=REVIEW_SCHEMA)
        if text is None:
            return None
        parsed = parse_review(text)
        if isinstance(parsed, ReviewParseFailure):
            self._fail(step, f"invalid structured response: {parsed.reason}")
            return None
        return parsed.review

    def _exchange(self, step: str, prompt: str, schema: dict | None) -> str | None:
        """Call the endpoint once and log the exchange. Returns None after a failure."""
        try:
            text = self.client.complete(self.model, prompt, schema)
        except CompletionError as e:
            self._record(ApiLogEntry(step=step, prompt=prompt, response=None, error=str(e)))
            self._fail(step, str(e))
            return None
        self._record(ApiLogEntry(step=step, prompt=prompt, response=text))
        return text

    def _record(self, entry: ApiLogEntry):
        self.log.append(entry)
        if self.on_log is not None:
            self.on_log(entry)

    def _fail(self, stage: str, reason: str):
        logger.error("Review pipeline failed at %s: %s", stage, reason)
        self.state = PipelineState.FAILED
        self.failed_stage = stage
        self.failure = reason

    @staticmethod
    def _stage_for(state: PipelineState) -> str:
        return {
            PipelineState.AWAITING_CONTEXT: STEP_CONTEXT,
            PipelineState.AWAITING_INITIAL_REVIEW: STEP_INITIAL_REVIEW,
            PipelineState.AWAITING_REFINEMENT: STEP_REFINEMENT,
        }[state]

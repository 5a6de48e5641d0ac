"""Submission processing: validate against a form's rules, then dispatch to its handler."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from formwire.exceptions import HandlerFailure
from formwire.registry import FormRegistry
from formwire.validation import RuleEngine, RuleValidator

logger = logging.getLogger(__name__)


class SubmissionState(str, Enum):
    RECEIVED = "received"
    VALIDATING = "validating"
    VALIDATED = "validated"
    HANDLING = "handling"
    SUCCEEDED = "succeeded"
    REJECTED = "rejected"


_TRANSITIONS: dict[SubmissionState, set[SubmissionState]] = {
    SubmissionState.RECEIVED: {SubmissionState.VALIDATING},
    SubmissionState.VALIDATING: {SubmissionState.VALIDATED, SubmissionState.REJECTED},
    SubmissionState.VALIDATED: {SubmissionState.HANDLING},
    SubmissionState.HANDLING: {SubmissionState.SUCCEEDED, SubmissionState.REJECTED},
    SubmissionState.SUCCEEDED: set(),
    SubmissionState.REJECTED: set(),
}


@dataclass
class Submission:
    """One submission's progress and outcome."""

    form_name: str
    data: dict[str, Any]
    state: SubmissionState = SubmissionState.RECEIVED
    errors: dict[str, list[str]] = field(default_factory=dict)
    failure: HandlerFailure | None = None
    result: Any = None
    messages: list[str] = field(default_factory=list)

    def transition(self, state: SubmissionState) -> None:
        if state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Invalid submission transition {self.state.value} -> {state.value}")
        logger.debug("Submission to %s: %s -> %s", self.form_name, self.state.value, state.value)
        self.state = state

    @property
    def succeeded(self) -> bool:
        return self.state is SubmissionState.SUCCEEDED

    def envelope(self) -> dict[str, Any]:
        """The response body: success with result/messages, or errors / error."""
        if self.succeeded:
            return {"success": True, "result": self.result, "messages": list(self.messages)}
        if self.failure is not None:
            return {"success": False, "error": str(self.failure)}
        return {"success": False, "errors": self.errors}


class SubmissionProcessor:
    """Validates submissions and dispatches them to the form's handler.

    Validation errors and handler exceptions both produce a rejected
    submission; neither is raised to the caller. An unknown form name
    raises NotFound.
    """

    def __init__(self, registry: FormRegistry, engine: RuleEngine | None = None):
        self.registry = registry
        self.engine = engine if engine is not None else RuleValidator()

    def process(self, form_name: str, data: Mapping[str, Any]) -> dict[str, Any]:
        return self.submit(form_name, data).envelope()

    def submit(self, form_name: str, data: Mapping[str, Any]) -> Submission:
        form = self.registry.get(form_name)
        submission = Submission(form_name=form.name, data=dict(data))

        submission.transition(SubmissionState.VALIDATING)
        errors = self.engine.validate(form.rules(), submission.data, form.messages)
        if errors:
            submission.errors = errors
            submission.transition(SubmissionState.REJECTED)
            return submission
        submission.transition(SubmissionState.VALIDATED)

        submission.transition(SubmissionState.HANDLING)
        try:
            submission.result = form.handle(form.transform(submission.data))
        except Exception as exc:
            logger.warning("Handler for form %s failed", form.name, exc_info=True)
            submission.failure = HandlerFailure(form.name, exc)
            submission.transition(SubmissionState.REJECTED)
            return submission

        submission.messages = form.success_messages
        submission.transition(SubmissionState.SUCCEEDED)
        return submission

"""Search job lifecycle as an explicit finite-state machine.

``SUBMITTING -> POLLING -> FETCHING -> DONE``, with a failure exit to
``FAILED`` from every non-terminal phase.  :func:`transition` is pure: it
maps ``(phase, event)`` to the next phase plus the action the driver must
perform, so retry and poll behaviour can be tested without a backend.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ...domain import DispatchState, EventReaderError, Job, JobFailedError, SearchRow


class JobPhase(str, Enum):
    SUBMITTING = "submitting"
    POLLING = "polling"
    FETCHING = "fetching"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobPhase.DONE, JobPhase.FAILED)


class Action(str, Enum):
    POLL = "poll"          # read job status now
    WAIT = "wait"          # job still running: sleep, then read status again
    FETCH = "fetch"        # download result rows
    COMPLETE = "complete"  # hand rows to the caller
    FAIL = "fail"          # raise Transition.error


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Submitted:
    sid: str


@dataclass(frozen=True)
class StatusReported:
    job: Job


@dataclass(frozen=True)
class PollBudgetExhausted:
    job: Job
    polls: int


@dataclass(frozen=True)
class RowsFetched:
    rows: tuple[SearchRow, ...]


@dataclass(frozen=True)
class Failed:
    error: EventReaderError


LifecycleEvent = Submitted | StatusReported | PollBudgetExhausted | RowsFetched | Failed


@dataclass(frozen=True)
class Transition:
    phase: JobPhase
    action: Action
    error: EventReaderError | None = None


# ---------------------------------------------------------------------------
# Transition function
# ---------------------------------------------------------------------------

def classify_job(job: Job) -> JobFailedError | None:
    """Return the failure a job snapshot represents, if any.

    Diagnostic messages on a DONE job count as failure: index-level
    problems are reported that way and must not pass as an empty result.
    """
    if job.dispatch_state is DispatchState.FAILED:
        return JobFailedError(job.sid, job.dispatch_state.value, job.messages)
    if job.dispatch_state is DispatchState.DONE and job.has_diagnostics:
        return JobFailedError(job.sid, job.dispatch_state.value, job.messages)
    return None


def transition(phase: JobPhase, event: LifecycleEvent) -> Transition:
    """Compute the next phase and driver action.

    Raises:
        ValueError: If *event* cannot occur in *phase*.
    """
    if phase.is_terminal:
        raise ValueError(f"Job lifecycle already ended in phase '{phase.value}'")

    if isinstance(event, Failed):
        return Transition(JobPhase.FAILED, Action.FAIL, event.error)

    if phase is JobPhase.SUBMITTING and isinstance(event, Submitted):
        return Transition(JobPhase.POLLING, Action.POLL)

    if phase is JobPhase.POLLING and isinstance(event, StatusReported):
        error = classify_job(event.job)
        if error is not None:
            return Transition(JobPhase.FAILED, Action.FAIL, error)
        if event.job.dispatch_state is DispatchState.DONE:
            return Transition(JobPhase.FETCHING, Action.FETCH)
        return Transition(JobPhase.POLLING, Action.WAIT)

    if phase is JobPhase.POLLING and isinstance(event, PollBudgetExhausted):
        job = event.job
        error = JobFailedError(
            job.sid,
            job.dispatch_state.value,
            job.messages,
            message=f"Search job {job.sid} still {job.dispatch_state.value} after {event.polls} polls",
        )
        return Transition(JobPhase.FAILED, Action.FAIL, error)

    if phase is JobPhase.FETCHING and isinstance(event, RowsFetched):
        return Transition(JobPhase.DONE, Action.COMPLETE)

    raise ValueError(f"Event {type(event).__name__} is not valid in phase '{phase.value}'")

"""Staged confirmation stepper for cascade deletions.

``ConfirmationState`` is an immutable position in the step plan with pure
transitions (``advance`` / ``reset``). ``ConfirmationWorkflow`` is the
caller-owned wrapper that carries the confirm / cancel callbacks.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace

from app.schemas.records import CultivationCycleRecord, CuttingOperationRecord
from app.services.impact import ConfirmationStep, analyze_impact, build_confirmation_steps


@dataclass(frozen=True)
class ConfirmationState:
	step_count: int
	index: int = 0

	def __post_init__(self) -> None:
		if self.step_count < 1:
			raise ValueError("a confirmation plan needs at least one step")
		if not 0 <= self.index < self.step_count:
			raise ValueError(f"step index {self.index} outside [0, {self.step_count})")

	@property
	def is_last_step(self) -> bool:
		return self.index == self.step_count - 1

	@property
	def progress_percent(self) -> float:
		return (self.index + 1) / self.step_count * 100


def advance(state: ConfirmationState) -> tuple[ConfirmationState, bool]:
	"""Move one step forward; on the last step, confirm and wrap back to 0.

	Returns the next state and whether this transition confirmed the plan.
	"""
	if state.is_last_step:
		return replace(state, index=0), True
	return replace(state, index=state.index + 1), False


def reset(state: ConfirmationState) -> ConfirmationState:
	return replace(state, index=0)


def _noop() -> None:
	return None


class ConfirmationWorkflow:
	"""Walks a confirmation plan, firing ``on_confirm`` once per completed pass."""

	def __init__(
		self,
		steps: Sequence[ConfirmationStep],
		on_confirm: Callable[[], None] = _noop,
		on_cancel: Callable[[], None] = _noop,
		state: ConfirmationState | None = None,
	):
		self.steps = list(steps)
		self.on_confirm = on_confirm
		self.on_cancel = on_cancel
		self.state = state or ConfirmationState(step_count=len(self.steps))
		if self.state.step_count != len(self.steps):
			raise ValueError("workflow state does not match the step plan")

	@property
	def index(self) -> int:
		return self.state.index

	@property
	def step_count(self) -> int:
		return self.state.step_count

	@property
	def current_step(self) -> ConfirmationStep:
		return self.steps[self.state.index]

	@property
	def is_last_step(self) -> bool:
		return self.state.is_last_step

	@property
	def progress_percent(self) -> float:
		return self.state.progress_percent

	def next(self) -> bool:
		self.state, confirmed = advance(self.state)
		if confirmed:
			self.on_confirm()
		return confirmed

	def cancel(self) -> None:
		self.state = reset(self.state)
		self.on_cancel()


def open_workflow(
	operation: CuttingOperationRecord | None,
	related_cycles: Sequence[CultivationCycleRecord],
	on_confirm: Callable[[], None] = _noop,
	on_cancel: Callable[[], None] = _noop,
) -> ConfirmationWorkflow | None:
	"""Build a workflow for deleting ``operation``, or ``None`` when there is nothing to confirm."""
	if operation is None or not related_cycles:
		return None
	steps = build_confirmation_steps(analyze_impact(operation, related_cycles))
	return ConfirmationWorkflow(steps, on_confirm=on_confirm, on_cancel=on_cancel)

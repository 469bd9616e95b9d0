from __future__ import annotations

from typing import Any

__all__ = ["BoostArtifacts", "BoostWorkflow", "CycleOutcome"]


def __getattr__(name: str) -> Any:
	if name in {"BoostArtifacts", "BoostWorkflow", "CycleOutcome"}:
		from . import boost_workflow

		return getattr(boost_workflow, name)
	raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

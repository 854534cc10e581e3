"""
Case Workflow

Stage state machine, stage time tracking, and the workflow that couples
them to document delivery.
"""

from .case_workflow import CaseWorkflow, CompletionResult, TransitionResult
from .state_machine import CaseStateMachine, STAGE_CONFIG
from .time_tracker import StageTimeTracker

__all__ = [
    'CaseStateMachine',
    'CaseWorkflow',
    'CompletionResult',
    'STAGE_CONFIG',
    'StageTimeTracker',
    'TransitionResult',
]

"""
Open-loop autonomous motion primitives.
"""

from .primitives import (MotionKind, MotionStatus, MotionTarget, MotionPrimitive,
                         MotionSequencer, MotionError, MotionTimeoutError,
                         MotionCancelledError, run_routine)

__all__ = ["MotionKind", "MotionStatus", "MotionTarget", "MotionPrimitive",
           "MotionSequencer", "MotionError", "MotionTimeoutError",
           "MotionCancelledError", "run_routine"]

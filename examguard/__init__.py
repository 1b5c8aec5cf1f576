"""
Proctored Exam Session Client - examguard Package

This package contains the student-side state machine for a timed exam:
- models: Session, question and gateway record structures
- sequencer: Reload-stable randomized question order
- timer: Exam countdown anchored on a persisted start time
- detention: Focus-loss penalty with a reducible countdown
- submission: Exactly-once answer submission
- reconciler: Server-wins merge of pushed and polled state
- controller: Hydration, wiring and teardown of a running session
"""

__version__ = "1.0.0"

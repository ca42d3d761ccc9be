"""Window Specification Resolution Engine.

This package turns free-form conversational turns into a structured
window specification for quoting.

Architecture:
- SpecificationValidator: priority-tiered validation and defaults
- AmbiguityDetector: vague-term detection and resolution
- ClarificationService: one pending clarification per conversation
- ConversationFlowService: per-message orchestration
"""

__version__ = "1.0.0"

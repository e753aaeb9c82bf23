"""
Daily review (reconciliation) subsystem.

- review_models.py: ReviewAction / ReviewSuggestion / TaskMutation
- collaborator.py: LLM-backed analysis of a free-text reflection
- engine.py: review state machine and the apply algorithm
"""

"""
Orchestration Layer - Workflow Coordination

This layer coordinates the scoring workflow.
- The scoring engine composes the transformation steps
- The orchestrator wires sources, writers and the engine
- The scheduler runs passes on a fixed cadence
"""

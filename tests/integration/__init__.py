"""
Integration Tests for Nexus Flows

Integration tests cover end-to-end scenarios:
- Full flow execution against the database collaborators
- Execution history and logs
- Event-triggered flows
"""

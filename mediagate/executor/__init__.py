"""Workflow execution for the gateway.

Architecture (bottom-up):
- execution_store: In-memory execution records, status transitions, task handles
- workflow_runner: Validation, background execution, sequential/parallel strategies
"""

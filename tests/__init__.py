"""
chainplan Test Suite
====================

Test organization mirrors the source code structure:
    tests/
    ├── test_core/           → chainplan.core (config, models, plan, registry, state)
    ├── test_infrastructure/ → chainplan.infrastructure (artifact stores)
    ├── test_integrations/   → chainplan.integrations (deployers)
    ├── test_orchestration/  → chainplan.orchestration (address table, orchestrator)
    ├── test_integration/    → End-to-end runs through the facade
    └── conftest.py          → Shared pytest fixtures

Running Tests:
    pytest                          # Run all tests
    pytest tests/test_core/         # Run only core tests
"""

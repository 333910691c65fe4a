from .health_gate import (
    HealthGate as HealthGate,
    HealthGateState as HealthGateState,
    target_satisfied as target_satisfied,
)

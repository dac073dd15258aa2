"""
scenario_config.py

Named topologies and workloads for the dispatch simulation.

Each scenario specifies:
- number of base stations and devices per station
- device resource and price ranges
- task demand and budget ranges, and how many tasks arrive
- which protocol the tasks enter through ("dispatch" or "offload")
"""

from dataclasses import dataclass
from typing import Dict, List, Tuple

from .EnvConfig import EnvConfig

PROTOCOLS = ("dispatch", "offload")


@dataclass
class ScenarioConfig:
    """Configuration for a simulation scenario."""
    name: str
    description: str

    num_stations: int = EnvConfig.NUM_BASE_STATIONS
    devices_per_station: int = EnvConfig.DEVICES_PER_STATION

    device_cpu_range: Tuple[float, float] = (EnvConfig.DEVICE_CPU_MIN, EnvConfig.DEVICE_CPU_MAX)
    device_memory_range: Tuple[float, float] = (EnvConfig.DEVICE_MEMORY_MIN, EnvConfig.DEVICE_MEMORY_MAX)
    device_price_range: Tuple[float, float] = (EnvConfig.DEVICE_PRICE_MIN, EnvConfig.DEVICE_PRICE_MAX)

    num_tasks: int = EnvConfig.NUM_TASKS
    task_cpu_range: Tuple[float, float] = (EnvConfig.TASK_CPU_MIN, EnvConfig.TASK_CPU_MAX)
    task_memory_range: Tuple[float, float] = (EnvConfig.TASK_MEMORY_MIN, EnvConfig.TASK_MEMORY_MAX)
    task_budget_range: Tuple[float, float] = (EnvConfig.TASK_BUDGET_MIN, EnvConfig.TASK_BUDGET_MAX)

    protocol: str = "dispatch"

    def __post_init__(self):
        """Validate configuration."""
        if self.num_stations < 1:
            raise ValueError(f"num_stations must be at least 1, got {self.num_stations}")
        if self.devices_per_station < 0:
            raise ValueError(f"devices_per_station must be non-negative, got {self.devices_per_station}")
        if self.num_tasks < 0:
            raise ValueError(f"num_tasks must be non-negative, got {self.num_tasks}")
        if self.protocol not in PROTOCOLS:
            raise ValueError(f"protocol must be one of {PROTOCOLS}, got {self.protocol!r}")

        for field_name in ("device_cpu_range", "device_memory_range", "device_price_range",
                           "task_cpu_range", "task_memory_range", "task_budget_range"):
            low, high = getattr(self, field_name)
            if low > high:
                raise ValueError(f"{field_name} must be (low, high) with low <= high, got {(low, high)}")
        # Tasks must have positive demand
        if self.task_cpu_range[0] <= 0 or self.task_memory_range[0] <= 0:
            raise ValueError("task demand ranges must be strictly positive")


# ============================================================================
# BASELINE: default topology, tasks enter from the cloud
# ============================================================================
BASELINE = ScenarioConfig(
    name="Baseline",
    description="3 stations x 4 devices, cloud-initiated dispatch",
)

BASELINE_OFFLOAD = ScenarioConfig(
    name="Baseline - Offload",
    description="3 stations x 4 devices, tasks enter the peer cascade directly",
    protocol="offload",
)

# ============================================================================
# SATURATED: heavy tasks on small devices, most end up in the cloud
# ============================================================================
SATURATED = ScenarioConfig(
    name="Saturated",
    description="Small devices and heavy tasks; cascades mostly exhaust to the cloud",
    devices_per_station=2,
    device_cpu_range=(0.5, 2.0),
    device_memory_range=(0.5, 2.0),
    task_cpu_range=(1.5, 4.0),
    task_memory_range=(1.5, 4.0),
    protocol="offload",
)

# ============================================================================
# BUDGET LIMITED: plenty of resources but tight budgets
# ============================================================================
BUDGET_LIMITED = ScenarioConfig(
    name="Budget limited",
    description="Large devices, expensive prices, tight task budgets",
    device_cpu_range=(4.0, 8.0),
    device_memory_range=(4.0, 16.0),
    device_price_range=(5.0, 12.0),
    task_budget_range=(1.0, 7.0),
    protocol="offload",
)

# ============================================================================
# WIDE: many stations, few devices each
# ============================================================================
WIDE = ScenarioConfig(
    name="Wide",
    description="10 stations x 1 device, peer cascade",
    num_stations=10,
    devices_per_station=1,
    num_tasks=100,
    protocol="offload",
)


ALL_SCENARIOS: Dict[str, ScenarioConfig] = {
    "baseline": BASELINE,
    "baseline_offload": BASELINE_OFFLOAD,
    "saturated": SATURATED,
    "budget_limited": BUDGET_LIMITED,
    "wide": WIDE,
}


def get_scenario(scenario_key: str) -> ScenarioConfig:
    """Get scenario configuration by key."""
    if scenario_key not in ALL_SCENARIOS:
        raise ValueError(
            f"Unknown scenario: {scenario_key}. "
            f"Available: {list(ALL_SCENARIOS.keys())}"
        )
    return ALL_SCENARIOS[scenario_key]


def list_scenarios() -> List[str]:
    """List all available scenario keys."""
    return list(ALL_SCENARIOS.keys())

import logging


class EnvConfig:
    """
    Default parameters of the edge dispatch simulation.

    Scenario definitions in `scenario_config` override the topology and
    workload values; the network and logging values are shared by all runs.
    """

    # ===== TOPOLOGY =====
    NUM_BASE_STATIONS = 3
    DEVICES_PER_STATION = 4

    # ===== NETWORK =====
    # Addresses are handed out as 10.0.0.1, 10.0.0.2, ... in bind order
    NETWORK_PREFIX = "10.0.0."
    BASE_PORT = 8860
    CLOUD_PORT = 8880
    EDGE_DEVICE_PORT = 8890

    # ===== EDGE DEVICE RESOURCES =====
    DEVICE_CPU_MIN = 1.0      # GHz
    DEVICE_CPU_MAX = 4.0      # GHz
    DEVICE_MEMORY_MIN = 1.0   # GB
    DEVICE_MEMORY_MAX = 8.0   # GB
    DEVICE_PRICE_MIN = 1.0
    DEVICE_PRICE_MAX = 10.0

    # ===== TASK GENERATION =====
    NUM_TASKS = 50
    TASK_CPU_MIN = 0.5        # GHz
    TASK_CPU_MAX = 3.5        # GHz
    TASK_MEMORY_MIN = 0.5     # GB
    TASK_MEMORY_MAX = 4.0     # GB
    TASK_BUDGET_MIN = 2.0
    TASK_BUDGET_MAX = 10.0

    # ===== SIMULATION =====
    SEED = 42
    # Upper bound on transport deliveries per run; cascades terminate long before
    MAX_EVENTS = 100_000

    # ===== LOGGING =====
    LOG_LEVEL = logging.INFO
    LOGGING_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def configure_logging(level=None):
    """Configure root logging once for scripts and interactive runs."""
    logging.basicConfig(
        level=EnvConfig.LOG_LEVEL if level is None else level,
        format=EnvConfig.LOGGING_FORMAT,
    )

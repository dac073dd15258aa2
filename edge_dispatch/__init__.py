"""
edge_dispatch
=============

Task dispatch for a simulated edge network of base stations, edge devices
and a cloud server:

- `EnvConfig` – simulation defaults and logging setup
- `Task`, `Message`, `MessageKind`, `TaskFactory` – task envelope and wire codec
- `EdgeDevice`, `EdgeDeviceContainer`, `DeviceFactory` – per-station resource pools
- `BaseStation`, `BaseStationContainer` – admission check and dispatch cascades
- `DispatchRecordRegistry` – shared record of stations that failed a task
- `CloudServer`, `Transport` – the cloud endpoint and in-process network
- `Simulator`, `Metrics` – end-to-end runs
- Scenario helpers from `scenario_config`
"""

from .EnvConfig import EnvConfig, configure_logging  # noqa: F401
from .models import (  # noqa: F401
    Endpoint,
    Message,
    MessageKind,
    Task,
    TaskFactory,
)
from .transport import Transport, UdpApplication, UnknownEndpointError  # noqa: F401
from .edge_device import EdgeDevice, EdgeDeviceContainer, DeviceFactory  # noqa: F401
from .registry import DispatchRecordRegistry  # noqa: F401
from .base_station import (  # noqa: F401
    BaseStation,
    BaseStationContainer,
    CloudLinkError,
    StationSetupError,
    can_admit,
)
from .cloud import CloudServer  # noqa: F401
from .simulator import Simulator, Metrics  # noqa: F401
from .scenario_config import (  # noqa: F401
    ScenarioConfig,
    ALL_SCENARIOS,
    get_scenario,
    list_scenarios,
)

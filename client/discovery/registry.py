"""Device registry: the last device snapshot returned by the backend."""

import logging
from typing import Iterable, Optional

from discovery.models import Device
from observers import ChangeNotifier

logger = logging.getLogger(__name__)


class DeviceRegistry(ChangeNotifier):
    """
    Holds exactly the backend's last snapshot.

    Writes replace the whole tuple; readers always get a consistent copy.
    Listeners receive the new device list after every write.
    """

    def __init__(self) -> None:
        super().__init__()
        self._devices: tuple[Device, ...] = ()

    @property
    def devices(self) -> list[Device]:
        return list(self._devices)

    def __len__(self) -> int:
        return len(self._devices)

    def get(self, device_id: str) -> Optional[Device]:
        """Look up a device in the current snapshot."""
        return next((d for d in self._devices if d.id == device_id), None)

    def replace(self, devices: Iterable[Device]) -> None:
        """Swap in a new snapshot. No merge with the previous one."""
        self._devices = tuple(devices)
        logger.debug(f"Registry replaced: {len(self._devices)} device(s)")
        self._notify(self.devices)

    def clear(self) -> None:
        if not self._devices:
            return
        self._devices = ()
        self._notify([])

from __future__ import annotations

from threading import Lock

from prometheus_app.models.schemas import Device


SEED_DEVICES = (
    Device(id=1, mac="AA:BB:CC:DD:EE:01", firmware="1.0.0"),
    Device(id=2, mac="AA:BB:CC:DD:EE:02", firmware="1.0.0"),
)


class DeviceStore:
    """Thread-safe, process-local device list (resets on restart).

    Ids are taken verbatim from callers, so several records may share one.
    """

    def __init__(self, devices: list[Device] | None = None) -> None:
        self._lock = Lock()
        self._devices: list[Device] = [d.model_copy() for d in devices or []]

    def list(self) -> list[Device]:
        with self._lock:
            return [d.model_copy() for d in self._devices]

    def append(self, device: Device) -> None:
        with self._lock:
            self._devices.append(device.model_copy())

    def update_firmware(self, device_id: int, firmware: str) -> int:
        """Set the firmware of every device with ``device_id``.

        Returns how many records matched; an unknown id touches nothing.
        """

        matched = 0
        with self._lock:
            for device in self._devices:
                if device.id == device_id:
                    device.firmware = firmware
                    matched += 1
        return matched

    def __len__(self) -> int:
        with self._lock:
            return len(self._devices)


def seeded_store() -> DeviceStore:
    return DeviceStore(list(SEED_DEVICES))

from __future__ import annotations

from pydantic import BaseModel


class Device(BaseModel):
    id: int
    mac: str
    firmware: str


class FirmwareUpgrade(BaseModel):
    firmware: str
